"""
themeforge/seeds.py
Random source for a generation run

All jitter, shuffling and sampling in one run draws from a single
GenerationContext. Without a run_seed the context is non-deterministic;
with one, the whole run is reproducible.

Do NOT use Python's built-in hash() for seeds - it's salted per-process.
"""

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def stable_u32(*parts) -> int:
    """
    Generate a stable 32-bit unsigned integer from arbitrary parts.

    Uses SHA-256 truncated to 4 bytes for cross-platform determinism.
    """
    s = "|".join(str(p) for p in parts).encode("utf-8")
    return int.from_bytes(hashlib.sha256(s).digest()[:4], "big")


def run_seed_from_string(s: str) -> int:
    """Convert arbitrary string to a run seed (e.g., a job id)."""
    return stable_u32("run", s)


@dataclass
class GenerationContext:
    """
    Random source for one pipeline run.

    Attributes:
        run_seed: Master seed, or None for a fresh OS-entropy source
    """
    run_seed: Optional[int] = None
    _rng: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self):
        self._rng = np.random.default_rng(self.run_seed)

    @property
    def seeded(self) -> bool:
        return self.run_seed is not None

    def uniform(self, low: float, high: float) -> float:
        """Uniform float in [low, high)."""
        return float(self._rng.uniform(low, high))

    def jitter(self, half_width: float) -> float:
        """Uniform offset in [-half_width, half_width)."""
        return self.uniform(-half_width, half_width)

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._rng.random())

    def choice(self, values: Sequence[T]) -> T:
        """Pick one element uniformly."""
        if not values:
            raise ValueError("cannot choose from an empty sequence")
        return values[int(self._rng.integers(0, len(values)))]

    def shuffled(self, values: Sequence[T]) -> List[T]:
        """Return a shuffled copy; the input is untouched."""
        items = list(values)
        order = self._rng.permutation(len(items))
        return [items[i] for i in order]

    def hex_token(self, length: int = 6) -> str:
        """Random lowercase hex string, used for id suffixes."""
        return "".join(
            "0123456789abcdef"[int(d)] for d in self._rng.integers(0, 16, size=length)
        )

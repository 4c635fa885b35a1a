"""
themeforge/naming.py
Centralized naming schema for evolution runs

Naming Convention:
- job_id:        evo_{hex}  /  evo_stream_{hex}
- stream_id:     stream_{hex}
- candidate_id:  cand_{index:04d}_{6 hex}
- artifacts:     /artifacts/{job_id}/{generation}/{index}.png|.qa.json
- family label:  "premium/neo-brutalist" -> "Premium Neo Brutalist"
"""

import re
import uuid
from typing import Tuple

from .models import ArtifactPaths

JOB_ID_REGEX = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-]*$")
CANDIDATE_ID_REGEX = re.compile(r"^cand_\d{4,}_[0-9a-f]{6}$")

ARTIFACT_ROOT = "/artifacts"
MAX_SLUG_LENGTH = 48

_LABEL_SPLIT = re.compile(r"[-_\s/]+")


class NamingError(ValueError):
    """Raised when a name violates the naming schema."""
    pass


def sanitize_to_slug(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """
    Convert arbitrary string to a filesystem-safe slug.

    - Lowercase
    - Replace non-alphanumeric with underscore
    - Collapse multiple underscores
    - Strip leading/trailing underscores
    - Truncate to max_length
    """
    slug = "".join(c if c.isalnum() else "_" for c in name.lower())

    while "__" in slug:
        slug = slug.replace("__", "_")

    slug = slug.strip("_")

    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("_")

    if len(slug) < 1:
        slug = "unnamed"

    return slug


def validate_job_id(job_id: str) -> None:
    """Validate a job id or raise NamingError."""
    if not job_id:
        raise NamingError("job_id cannot be empty")
    if not JOB_ID_REGEX.match(job_id):
        raise NamingError(
            f"job_id '{job_id}' must be letters, digits, '_' or '-'"
        )


def to_title_case(text: str) -> str:
    """Split on -, _, whitespace and / then capitalize each part."""
    return " ".join(
        part[0].upper() + part[1:]
        for part in _LABEL_SPLIT.split(text)
        if part
    )


def split_family_id(family_id: str) -> Tuple[str, str]:
    """'mood/era' -> (mood, era). Missing era comes back empty."""
    mood, _, era = family_id.partition("/")
    return mood, era


def family_label(family_id: str) -> str:
    """Board label for a visual family."""
    mood, era = split_family_id(family_id)
    return f"{to_title_case(mood)} {to_title_case(era)}".strip()


def make_candidate_id(index: int, token: str) -> str:
    """index is 0-based; ids count from 1."""
    return f"cand_{index + 1:04d}_{token}"


def make_artifact_paths(job_id: str, generation: int, index: int) -> ArtifactPaths:
    """Screenshot + QA report placeholders for candidate `index` (0-based)."""
    base = f"{ARTIFACT_ROOT}/{job_id}/{generation}/{index + 1}"
    return ArtifactPaths(screenshot=f"{base}.png", qa_report=f"{base}.qa.json")


def make_job_id(stream: bool = False) -> str:
    if stream:
        return f"evo_stream_{uuid.uuid4().hex[:18]}"
    return f"evo_{uuid.uuid4().hex[:20]}"


def make_stream_id() -> str:
    return f"stream_{uuid.uuid4().hex[:10]}"

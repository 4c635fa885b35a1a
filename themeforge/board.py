"""
themeforge/board.py
Family board: candidates grouped by mood/era
"""

from collections import OrderedDict
from typing import List, Sequence

from .config import SELECTION_CONFIG
from .models import Candidate, FamilyGroup
from .naming import family_label
from .select import by_score


def build_family_board(
    candidates: Sequence[Candidate],
    variants_per_family: int = 6,
) -> List[FamilyGroup]:
    """
    Group by visual family, best `variants_per_family` per group.

    Groups are ordered by their top member's score; ties keep first-seen
    order.
    """
    variants_per_family = max(1, int(variants_per_family))
    groups: "OrderedDict[str, List[Candidate]]" = OrderedDict()
    for candidate in candidates:
        groups.setdefault(candidate.visual_family_id, []).append(candidate)

    board = [
        FamilyGroup(
            family_id=family_id,
            label=family_label(family_id),
            candidates=tuple(by_score(members)[:variants_per_family]),
        )
        for family_id, members in groups.items()
    ]
    board.sort(key=lambda g: g.candidates[0].scores.score, reverse=True)
    return board


def board_variants(variants_per_family) -> int:
    """Board width for a configured variants_per_family (unset -> default)."""
    return max(1, int(variants_per_family or SELECTION_CONFIG.default_variants_per_family))

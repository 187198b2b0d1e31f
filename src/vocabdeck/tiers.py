"""
tiers.py — Assign study tiers (1, 2, 3) to cleaned entries.

Tier system:
  - 1: advanced and rare (level B2+ with Zipf < 4), or looked up 5+ times
  - 2: everything else with Zipf < 5
  - 3: common words (Zipf >= 5)

Tier 1 is exported first; it holds the words the reader struggles with most.
"""

from typing import Optional


# CEFR levels in ascending difficulty
LEVELS = ['A1', 'A2', 'B1', 'B2', 'C1', 'C2']
LEVEL_RANK = {level: rank for rank, level in enumerate(LEVELS)}

TIERS = (1, 2, 3)

DEFAULT_LEVEL = 'B2'
DEFAULT_ZIPF = 3.5

RARE_ZIPF = 4.0
COMMON_ZIPF = 5.0
HEAVY_LOOKUP_COUNT = 5


def level_rank(level: Optional[str]) -> int:
    """Rank of a CEFR level (A1=0 .. C2=5); unknown levels rank -1."""
    if level is None:
        level = DEFAULT_LEVEL
    return LEVEL_RANK.get(level.upper(), -1)


def decide_tier(level: Optional[str], zipf: Optional[float], count: Optional[int] = None) -> int:
    """
    Decide the tier for one entry.

    Args:
        level: CEFR level (None -> B2)
        zipf: Zipf frequency score (None -> 3.5)
        count: Lookup count (None -> 0)

    Returns:
        1, 2 or 3
    """
    if zipf is None:
        zipf = DEFAULT_ZIPF
    count = count or 0

    if (level_rank(level) >= LEVEL_RANK['B2'] and zipf < RARE_ZIPF) or count >= HEAVY_LOOKUP_COUNT:
        return 1
    if zipf < COMMON_ZIPF:
        return 2
    return 3

"""
Deterministic ordering of media items by filename.

Release names encode quality and episode inconsistently ("Show.720p.E01.mkv",
"Show - Episode 3 [1080p].mp4", "Part2.mp3"), so items are ordered by a
composite key:

1. quality rank from a resolution token (unknown quality sorts last),
2. episode/part number (no number sorts last within its quality tier),
3. case-insensitive filename collation in the process locale, then the raw
   filename.

Every token has its own rank, so 2160p and 4K releases form separate groups.
"""

import locale
import logging
import re
from typing import Iterable, Optional

from seqbot.models.items import Item

logger = logging.getLogger(__name__)

QUALITY_RANKS = {
    "480p": 1,
    "540p": 2,
    "720p": 3,
    "1080p": 4,
    "2160p": 5,
    "4k": 6,
}
UNKNOWN_QUALITY = max(QUALITY_RANKS.values()) + 1
UNKNOWN_EPISODE = 10_000

_QUALITY_RE = re.compile(
    r"(?<![a-z0-9])(480p|540p|720p|1080p|2160p|4k)(?![a-z0-9])",
    re.IGNORECASE,
)

# A marked number ("E02", "Ep 3", "Episode 10", "Part2") or a bare 1-3 digit
# number not glued to letters or other digits ("Show.05.mkv", "Show 2 - x").
_EPISODE_RE = re.compile(
    r"(?<![a-z])(?:episode|part|ep|e)\s*(\d{1,3})(?!\d)"
    r"|(?<![a-z0-9])(\d{1,3})(?![a-z0-9])",
    re.IGNORECASE,
)

SortKey = tuple[int, int, str, str]


def quality_rank(file_name: Optional[str]) -> int:
    """Return the rank of the first quality token in the name."""
    match = _QUALITY_RE.search(file_name or "")
    if not match:
        return UNKNOWN_QUALITY
    return QUALITY_RANKS[match.group(1).lower()]


def episode_number(file_name: Optional[str]) -> int:
    """Return the first episode/part number in the name."""
    match = _EPISODE_RE.search(file_name or "")
    if not match:
        return UNKNOWN_EPISODE
    return int(match.group(1) or match.group(2))


def sort_key(file_name: Optional[str]) -> SortKey:
    name = file_name or ""
    return (
        quality_rank(name),
        episode_number(name),
        locale.strxfrm(name.casefold()),
        name,
    )


def order_items(items: Iterable[Item]) -> list[Item]:
    """Return the items in viewing order. The sort is stable."""
    return sorted(items, key=lambda item: sort_key(item.file_name))


def use_system_collation() -> bool:
    """Collate filenames with the environment's locale (LC_COLLATE).

    Falls back to the "C" locale, where names still compare case-insensitively.
    """
    try:
        chosen = locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("Could not apply system collation locale: %s", exc)
        return False
    logger.info("Filename collation locale: %s", chosen)
    return True

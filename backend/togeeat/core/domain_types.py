"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - MatchingId and UserId wrap ints — never mix them up in signatures
    - All valid states encoded as Enums — no raw string matching
    - MatchingStatus has exactly two states; CLOSED is terminal

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, stored as plain strings in the DB
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

MatchingId = NewType("MatchingId", int)
UserId = NewType("UserId", int)


# ─── Enums ───────────────────────────────────────────────────────

class MatchingType(str, Enum):
    """QUICK runs for a duration from creation; YOTEI is scheduled for a date."""
    QUICK = "QUICK"
    YOTEI = "YOTEI"


class MatchingStatus(str, Enum):
    """Matching lifecycle states — maps to DB `status` column."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class SortField(str, Enum):
    """Columns a matching listing may be ordered by."""
    CREATED_AT = "created_at"
    MATCHING_DATE = "matching_date"
    ID = "id"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

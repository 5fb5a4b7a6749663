"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Matching is the aggregate root; memberships are scoped by matching_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from togeeat.models.user import User  # noqa: F401
from togeeat.models.matching import Matching  # noqa: F401
from togeeat.models.membership import Membership  # noqa: F401

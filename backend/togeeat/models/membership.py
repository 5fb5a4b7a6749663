"""Membership ORM — join table between users and the matchings they joined.

Invariants:
    - (matching_id, user_id) is the primary key: a user joins a matching at most once
    - Owner is tracked on Matching.owner_id, not by a membership row
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from togeeat.db.base import Base


class Membership(Base):
    __tablename__ = "memberships"

    matching_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("matchings.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True, index=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    matching: Mapped["Matching"] = relationship(
        "Matching", back_populates="members",
    )

"""Matching ORM — a group session request with an owner, a time window and members.

Invariants:
    - owner_id and created_at are immutable after insert
    - status transitions: OPEN -> CLOSED only (written by the sweep)
    - expires_at = matching_date (YOTEI) or created_at + duration (QUICK)
    - cascade delete for memberships (ORM and FK level)

Design Decisions:
    - expires_at denormalized: the sweep is one indexed conditional UPDATE
    - members loaded with selectin: avoids lazy-load IO in async context
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from togeeat.core.domain_types import MatchingStatus
from togeeat.db.base import Base


class Matching(Base):
    """Matching aggregate root — owns its membership rows."""
    __tablename__ = "matchings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    matching_type: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=MatchingStatus.OPEN.value,
    )
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    matching_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    # Relationships
    members: Mapped[list["Membership"]] = relationship(
        "Membership", back_populates="matching",
        cascade="all, delete-orphan",
        lazy="selectin", order_by="Membership.joined_at",
    )

    __table_args__ = (
        Index("idx_matchings_status_expires_at", "status", "expires_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Matching(id={self.id}, type={self.matching_type}, "
            f"owner_id={self.owner_id}, status={self.status})>"
        )

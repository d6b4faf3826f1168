"""Password reset requests (single-use, time-boxed)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from account_api.core.extensions import db

from .base import ReprMixin, UTCDateTime, UUIDPKMixin, to_utc

if TYPE_CHECKING:
    from .account import Account


class PasswordResetRequest(UUIDPKMixin, ReprMixin, db.Model):
    """A reset token handed to the account owner out of band."""

    __tablename__ = "password_reset_requests"

    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    account_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    account: Mapped[Account] = relationship("Account", back_populates="password_resets")

    __table_args__ = (Index("ix_password_reset_requests_account_id", "account_id"),)

    def is_expired_at(self, now: datetime) -> bool:
        return to_utc(self.expires_at) <= to_utc(now)

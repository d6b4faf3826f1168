"""Refresh token ledger rows."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Final
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from account_api.core.extensions import db

from .base import ReprMixin, UTCDateTime, UUIDPKMixin, to_utc

if TYPE_CHECKING:
    from .account import Account


class RevocationReason:
    """Values stored in ``refresh_tokens.revocation_reason``."""

    ROTATED: Final[str] = "rotated"
    MANUAL_LOGOUT: Final[str] = "manual-logout"
    REUSE_DETECTED: Final[str] = "reuse-detected"
    EXPIRED_CLEANUP: Final[str] = "expired-cleanup"
    PASSWORD_RESET: Final[str] = "password-reset"


class RefreshToken(UUIDPKMixin, ReprMixin, db.Model):
    """
    One issued refresh token and its lifecycle state.

    A row is never deleted by the token lifecycle. Rotation and revocation
    only set ``revoked_at`` (and, for rotation, ``replaced_by_token``), so the
    table doubles as the chain history used for reuse detection.

    Fields
    ------
    token : str
        Opaque bearer secret, unique across the ledger.
    account_id : UUID
        Owner. ``ON DELETE CASCADE``.
    issued_at, expires_at : datetime
        UTC issuance and expiry instants; ``expires_at > issued_at``.
    revoked_at : datetime | None
        Set exactly once; ``None`` while the token is live.
    replaced_by_token : str | None
        Successor token string, set only by rotation.
    revocation_reason : str | None
        One of :class:`RevocationReason`.
    ip_address, user_agent : str | None
        Client metadata captured at issuance.
    """

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    account_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    issued_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    replaced_by_token: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    revocation_reason: Mapped[str | None] = mapped_column(String(32), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)

    account: Mapped[Account] = relationship("Account", back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_account_id", "account_id"),
        Index("ix_refresh_tokens_account_revoked", "account_id", "revoked_at"),
    )

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired_at(self, now: datetime) -> bool:
        """Return ``True`` once ``now`` has reached ``expires_at``."""
        return to_utc(self.expires_at) <= to_utc(now)

    def is_active_at(self, now: datetime) -> bool:
        """
        Tell whether the token can still be rotated at ``now``.

        :param now: Reference instant.
        :type now: datetime
        :returns: ``True`` if not revoked and not yet expired.
        :rtype: bool
        """
        return not self.is_revoked and not self.is_expired_at(now)

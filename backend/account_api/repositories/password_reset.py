"""Password reset request repository."""

from __future__ import annotations

from datetime import datetime
from typing import cast
from uuid import UUID

from sqlalchemy import select

from account_api.models.base import to_utc
from account_api.models.password_reset import PasswordResetRequest
from account_api.repositories.base import BaseRepository


class PasswordResetRepository(BaseRepository[PasswordResetRequest]):
    """Persistence-only access to ``password_reset_requests``."""

    model = PasswordResetRequest

    def get_by_token(self, token: str) -> PasswordResetRequest | None:
        stmt = select(PasswordResetRequest).where(PasswordResetRequest.token == token)
        return cast(PasswordResetRequest | None, self.session.execute(stmt).scalars().first())

    def mark_used(self, request_id: UUID, *, now: datetime) -> bool:
        """Consume a reset request once.

        :param request_id: Request to consume.
        :type request_id: UUID
        :param now: Consumption instant.
        :type now: datetime
        :returns: ``False`` if the request was already used.
        :rtype: bool
        """
        changed = self._conditional_update(
            PasswordResetRequest.id == request_id,
            PasswordResetRequest.used_at.is_(None),
            values={"used_at": to_utc(now)},
        )
        return changed == 1

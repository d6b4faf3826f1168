"""Refresh-token lifecycle: issue, rotate with reuse detection, revoke."""

from .dto import AuthTokenConfig, ClientInfo, SessionOut, TokenPairOut
from .issuer import TokenIssuer
from .revocation import RevocationService
from .rotation import RotationEngine, RotationResult

__all__ = [
    "AuthTokenConfig",
    "ClientInfo",
    "SessionOut",
    "TokenPairOut",
    "TokenIssuer",
    "RevocationService",
    "RotationEngine",
    "RotationResult",
]

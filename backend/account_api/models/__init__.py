from account_api.models.account import Account, AuthProvider
from account_api.models.password_reset import PasswordResetRequest
from account_api.models.refresh_token import RefreshToken, RevocationReason

__all__ = [
    "Account",
    "AuthProvider",
    "PasswordResetRequest",
    "RefreshToken",
    "RevocationReason",
]

from .dto import PasswordResetIssuedOut, PasswordResetOut
from .service import PasswordResetService

__all__ = ["PasswordResetIssuedOut", "PasswordResetOut", "PasswordResetService"]

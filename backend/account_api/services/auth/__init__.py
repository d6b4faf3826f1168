from .dto import AccountOut, AuthOut, LoginIn, ProviderLoginIn, RegisterIn
from .service import AuthService

__all__ = ["AccountOut", "AuthOut", "AuthService", "LoginIn", "ProviderLoginIn", "RegisterIn"]

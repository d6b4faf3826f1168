"""Service layer base: transaction helpers and HTTP error translation."""

from __future__ import annotations

from account_api.core import errors as api_errors
from account_api.services._shared.errors import (
    AccountNotFoundError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    ServiceError,
    TokenExpiredError,
    TokenReuseDetectedError,
)
from account_api.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

# Service error -> (HTTP error class, problem code). First match wins, so
# subclasses come before their bases.
_ERROR_TABLE: tuple[tuple[type[ServiceError], type[api_errors.APIError], str], ...] = (
    (TokenReuseDetectedError, api_errors.Unauthorized, "token_reuse_detected"),
    (TokenExpiredError, api_errors.Unauthorized, "token_expired"),
    (InvalidTokenError, api_errors.Unauthorized, "invalid_token"),
    (InvalidCredentialsError, api_errors.Unauthorized, "invalid_credentials"),
    (AccountNotFoundError, api_errors.NotFound, "account_not_found"),
    (NotFoundError, api_errors.NotFound, "not_found"),
    (ConflictError, api_errors.Conflict, "conflict"),
)


class BaseService:
    """
    Base class for application services.

    Services orchestrate repositories inside a Unit of Work and never touch
    the global session directly. Domain outcomes are decided inside the
    Unit of Work and raised after it closes, so state changes that
    accompany a failure (the reuse cascade) still commit.
    """

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self, *, enforce_db_readonly: bool = True) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        :type enforce_db_readonly: bool
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(enforce_db_readonly=enforce_db_readonly)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map service errors to API (HTTP) errors.

        Token lifecycle failures become 401, lookups 404, uniqueness
        conflicts 409. Any other :class:`ServiceError` is a 400; anything
        else is returned untouched for the generic 500 handler.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        for service_error, api_error, code in _ERROR_TABLE:
            if isinstance(exc, service_error):
                return api_error(str(exc), code=code)

        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        return exc

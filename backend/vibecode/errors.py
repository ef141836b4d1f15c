"""
Error kinds raised by the generation core.

Every failure a caller can observe is one of the kinds in ``ErrorKind``.
Services raise the typed exceptions below; the HTTP layer maps them to a
status code exactly once, through ``HTTP_STATUS``.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    INVALID_CREDENTIAL = "invalid_credential"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    QUOTA_EXCEEDED = "quota_exceeded"
    BILLING_RACE = "billing_race"
    GENERATION_BACKEND = "generation_backend_error"
    PERSIST = "persist_error"


HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_CREDENTIAL: 401,
    ErrorKind.ACCESS_DENIED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.QUOTA_EXCEEDED: 402,
    ErrorKind.BILLING_RACE: 402,
    ErrorKind.GENERATION_BACKEND: 502,
    ErrorKind.PERSIST: 500,
}


class VibecodeError(Exception):
    """Base class for every typed failure.

    ``saga_state`` is filled in by the generation saga with the state the
    request was in when it failed; it stays ``None`` outside a saga.
    """

    kind: ErrorKind

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.saga_state: str | None = None

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> dict:
        body = {"error": self.kind.value, "detail": self.message}
        if self.saga_state is not None:
            body["saga_state"] = self.saga_state
        return body


class InvalidCredential(VibecodeError):
    kind = ErrorKind.INVALID_CREDENTIAL


class AccessDenied(VibecodeError):
    kind = ErrorKind.ACCESS_DENIED


class NotFound(VibecodeError):
    kind = ErrorKind.NOT_FOUND


class ProjectNotFound(NotFound):
    pass


class VersionNotFound(NotFound):
    pass


class AccountNotFound(NotFound):
    pass


class Conflict(VibecodeError):
    kind = ErrorKind.CONFLICT


class QuotaExceeded(VibecodeError):
    kind = ErrorKind.QUOTA_EXCEEDED


class BillingRaceError(QuotaExceeded):
    """The debit lost a race with a concurrent request for the same identity."""

    kind = ErrorKind.BILLING_RACE


class GenerationBackendError(VibecodeError):
    kind = ErrorKind.GENERATION_BACKEND


class PersistError(VibecodeError):
    kind = ErrorKind.PERSIST

    def __init__(self, message: str = "", refunded: bool | None = None) -> None:
        super().__init__(message)
        # None when no debit was made before the failure
        self.refunded = refunded

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.refunded is not None:
            body["refunded"] = self.refunded
        return body

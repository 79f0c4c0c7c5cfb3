"""
Error taxonomy for Ajar

Every failure raised by the reflective accessor carries the kind of failure
and the name of the member that caused it.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Kinds of reflective access failures."""

    MEMBER_NOT_FOUND = "member_not_found"
    ACCESS_DENIED = "access_denied"
    INVOCATION_FAILURE = "invocation_failure"
    CONSTRUCTION_FORBIDDEN = "construction_forbidden"


class ReflectionError(Exception):
    """Base class for reflective access failures."""

    kind: ErrorKind = ErrorKind.MEMBER_NOT_FOUND

    def __init__(self, member: str, message: Optional[str] = None):
        self.member = member
        super().__init__(message or f"{self.kind.value}: {member}")

    def __reduce__(self):
        return (self.__class__, (self.member, str(self)))


class MemberNotFound(ReflectionError, AttributeError):
    """No member with the given name (and signature) is declared on the type."""

    kind = ErrorKind.MEMBER_NOT_FOUND


class AccessDenied(ReflectionError):
    """The interpreter refused to read, bind or write the member."""

    kind = ErrorKind.ACCESS_DENIED


class InvocationFailure(ReflectionError):
    """The invoked method raised an exception from its own body."""

    kind = ErrorKind.INVOCATION_FAILURE

    def __init__(self, member: str, cause: BaseException, message: Optional[str] = None):
        self.cause = cause
        super().__init__(
            member, message or f"exception thrown by {member}: {type(cause).__name__}: {cause}"
        )

    def __reduce__(self):
        return (self.__class__, (self.member, self.cause, str(self)))


class ConstructionForbidden(ReflectionError, AssertionError):
    """A stateless utility namespace was instantiated."""

    kind = ErrorKind.CONSTRUCTION_FORBIDDEN


# Errors the try-variants convert into an absent result
RECOVERABLE_ERRORS = (MemberNotFound, AccessDenied, InvocationFailure)

__all__ = [
    "ErrorKind",
    "ReflectionError",
    "MemberNotFound",
    "AccessDenied",
    "InvocationFailure",
    "ConstructionForbidden",
    "RECOVERABLE_ERRORS",
]

"""Typed domain failures raised by the scheduling and lifecycle services.

Each failure is an `HTTPException` carrying a machine-readable `code`, so the
API layer can surface it directly while callers (and tests) can still tell
"nothing to do" apart from "blocked by contention" and "invalid request".
"""

from __future__ import annotations

from fastapi import HTTPException, status


class LabError(HTTPException):
    """Base class for expected, caller-recoverable failures."""

    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, code: str, message: str) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail={"code": code, "message": message},
        )
        self.code = code
        self.message = message


class NotFoundError(LabError):
    """Referenced task, user, task type, or machine does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND


class InvalidStateError(LabError):
    """The task's current state does not allow the requested transition."""

    status_code_default = status.HTTP_409_CONFLICT


class ResourceUnavailableError(LabError):
    """Machines or worker capacity are not available right now."""

    status_code_default = status.HTTP_409_CONFLICT


class InvalidRequestError(LabError):
    """Input is well-formed but references something unusable."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY

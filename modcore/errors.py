"""Error kinds surfaced by the moderation core.

Every failure a caller can see is a ``ModerationError`` carrying a stable
``code`` and a human-readable ``message``.  The web adapter maps
``http_status`` onto the response; ``Internal`` never exposes its message.
"""

from __future__ import annotations

from typing import Any


class ModerationError(Exception):
    """Base class for all moderation core errors."""

    code = "internal"
    http_status = 500

    def __init__(self, message: str = "", **details: Any) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidArgument(ModerationError):
    """Bad enum value, empty required field, out-of-range number, bad regex."""

    code = "invalid_argument"
    http_status = 400


class NotFound(ModerationError):
    """Missing flag, report, rule, word, penalty, queue item or content target."""

    code = "not_found"
    http_status = 404


class Conflict(ModerationError):
    """Backward state transition or a uniqueness race that was lost."""

    code = "conflict"
    http_status = 409


class Unauthorized(ModerationError):
    """Caller is not a moderator, or lacks the capability the action needs."""

    code = "unauthorized"
    http_status = 401


class Forbidden(ModerationError):
    """Caller may not view or mutate this particular record."""

    code = "forbidden"
    http_status = 403


class Internal(ModerationError):
    """Persistence or unexpected failure."""

    code = "internal"
    http_status = 500

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": "Internal error"}


class DeadlineExceeded(ModerationError):
    """The caller's deadline passed before the operation finished."""

    code = "deadline_exceeded"
    http_status = 504

"""Domain error taxonomy.

Services raise these; ``petnet.middleware.error_handler`` renders them as
``{"success": false, "error": ..., "kind": ...}`` with the matching status.
"""

from __future__ import annotations


class PetnetError(Exception):
    """Base class for every error surfaced to API callers."""

    kind: str = "error"
    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(PetnetError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(PetnetError):
    kind = "forbidden"
    status_code = 403
    default_message = "Forbidden"


class NotFound(PetnetError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidInput(PetnetError):
    kind = "invalid_input"
    status_code = 400
    default_message = "Invalid input"


class NotEligible(PetnetError):
    """The target exists in no votable state (missing, or its challenge is closed)."""

    kind = "not_eligible"
    status_code = 422
    default_message = "Target is not eligible for voting"


class DuplicateAction(PetnetError):
    kind = "duplicate_action"
    status_code = 409
    default_message = "Action already performed"


class Conflict(PetnetError):
    kind = "conflict"
    status_code = 409
    default_message = "Concurrent update detected, please retry"

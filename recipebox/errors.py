"""Error taxonomy for Recipe Box.

Every error that reaches the HTTP boundary is a RecipeBoxError. The
`message` is safe to show to callers; anything internal goes to the log.
"""

from typing import Literal, Optional


class RecipeBoxError(Exception):
    status_code = 500
    message = "An internal server error occurred"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFound(RecipeBoxError):
    """Entity is absent, or present but owned by someone else.

    Both cases render identically so existence never leaks to non-owners;
    `reason` keeps them apart for logging and tests.
    """
    status_code = 404

    def __init__(
        self,
        entity: str,
        entity_id: str,
        *,
        reason: Literal["missing", "not_owned"] = "missing",
    ):
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity} not found or access denied")


class ImageNotFound(RecipeBoxError):
    status_code = 404

    def __init__(self, storage_id: str):
        self.storage_id = storage_id
        super().__init__("Image not found in gallery")


class ValidationFailed(RecipeBoxError):
    status_code = 400


class InvalidAction(ValidationFailed):
    message = "Invalid action provided"


class RecipeBusy(RecipeBoxError):
    status_code = 409
    message = "Recipe is being modified by another request. Retry shortly."


class StorageError(RecipeBoxError):
    """Upload or delete against the object store failed."""
    message = "Image storage is unavailable"

    def __init__(self, detail: str = ""):
        # detail is for logs only
        self.detail = detail
        super().__init__()


class InternalError(RecipeBoxError):
    pass


class InvariantViolation(InternalError):
    """Aggregate would reference the same storage asset twice."""

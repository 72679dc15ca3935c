"""Exception types and user-facing error formatting."""

import uuid

GENERIC_ERROR_MESSAGE = (
    "Une erreur est survenue lors du traitement de votre demande. "
    "Merci de réessayer dans quelques instants."
)


class ShopAssistError(Exception):
    """Base class for ShopAssist errors."""


class InvalidRequestError(ShopAssistError, ValueError):
    """Caller input rejected before any collaborator call."""


class CollaboratorError(ShopAssistError, RuntimeError):
    """A correctness-critical collaborator (retrieval, generation) failed."""

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


def new_request_id() -> str:
    """Return an opaque id used to correlate a failure with the operational log."""
    return uuid.uuid4().hex


def format_user_error(request_id: str) -> str:
    """Build the stable message shown to end users when a turn fails.

    Returns:
        Generic message carrying the request id, never the underlying error.
    """
    return f"{GENERIC_ERROR_MESSAGE} (référence : {request_id})"

"""
Error taxonomy shared by the services and the HTTP layer.

Each error carries the status code and the client-safe message the API
returns as ``{"error": message}``.
"""

from typing import Optional

from src.utils.config import Config


class BargainAgentError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(BargainAgentError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(BargainAgentError):
    status_code = 404
    default_message = "Not found"


class QuotaExceededError(BargainAgentError):
    status_code = 403
    default_message = "Daily limit reached"


class StoreError(BargainAgentError):
    """Persistence failure. The message never includes database details."""

    status_code = 500
    default_message = "Internal server error"


class UpstreamError(BargainAgentError):
    """The Gemini call failed."""

    status_code = 500
    default_message = Config.SEARCH_FAILED_MESSAGE


class MalformedResponseError(UpstreamError):
    """Gemini answered, but not with the JSON we asked for."""


class ServiceUnavailableError(BargainAgentError):
    status_code = 503
    default_message = "Search service not initialized"

"""Error taxonomy shared by the API, the store adapter and the client."""
from typing import Optional


class ViralityError(Exception):
    """Base error; ``status_code`` is used when rendering ``{"error": ...}``."""

    status_code: int = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(ViralityError):
    status_code = 503
    default_message = "Auth backend is not configured"


class AuthenticationError(ViralityError):
    status_code = 401
    default_message = "Not authenticated"


class AuthUnavailableError(ViralityError):
    """Auth collaborator could not be reached or answered unexpectedly."""

    status_code = 503
    default_message = "Auth backend unavailable"


class AnalysisValidationError(ViralityError):
    status_code = 400
    default_message = "Invalid analysis payload"


class LifecycleError(AnalysisValidationError):
    """Illegal status transition or score assignment."""

    status_code = 409
    default_message = "Illegal status transition"


class InsufficientCreditsError(ViralityError):
    status_code = 402
    default_message = "No credits remaining"


class NotFoundError(ViralityError):
    status_code = 404
    default_message = "Resource not found"


class StoreError(ViralityError):
    status_code = 502
    default_message = "Store request failed"


class DispatchError(StoreError):
    """Scoring job could not be queued."""

    status_code = 503
    default_message = "Could not queue the analysis for scoring"


class ApiError(ViralityError):
    """Failure reported by the HTTP API, message passed through verbatim."""

    def __init__(self, message: Optional[str] = None, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code

"""Exceptions raised by the optimizer core."""


class OptimizerError(Exception):
    """Base exception for the content optimizer."""


class ConfigurationError(OptimizerError):
    """Raised when a required setting (e.g. GEMINI_API_KEY) is missing."""


class InputValidationError(OptimizerError, ValueError):
    """Raised when user input is rejected before any Gemini call is made."""


class ImageTooLargeError(InputValidationError):
    """Raised when a subject photo exceeds the upload size cap."""


class GenerationError(OptimizerError):
    """Base class for failures decoding a Gemini response."""


class MalformedResponseError(GenerationError):
    """Raised when a list-of-strings response has the wrong shape."""


class NoOutputError(GenerationError):
    """Raised when an image call returns no image (safety filter or refusal)."""


class InvalidTransitionError(OptimizerError):
    """Raised when a session action is not allowed in the current state."""


class SessionBusyError(OptimizerError):
    """Raised when a generation call is started while another is in flight."""

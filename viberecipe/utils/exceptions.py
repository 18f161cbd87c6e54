"""Custom exception classes."""

from typing import Any, Dict, Optional


class VibeRecipeException(Exception):
    """Base exception for VibeRecipe application."""

    pass


class ValidationError(VibeRecipeException):
    """Raised when input validation fails."""

    pass


class AuthenticationError(VibeRecipeException):
    """Raised when the caller did not supply the credentials a flow needs."""

    pass


class FetchError(VibeRecipeException):
    """Raised when page content could not be retrieved."""

    pass


class ExtractionError(VibeRecipeException):
    """Raised when the Gemini call fails or is rejected."""

    pass


class NotARecipeError(ExtractionError):
    """Raised when the model reports that the input is not a recipe."""

    pass


class ParseError(VibeRecipeException):
    """Raised when a model response cannot be coerced into a recipe."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class StaleResultError(VibeRecipeException):
    """Raised when an extraction finished after a newer one was started."""

    pass


class TandoorError(VibeRecipeException):
    """Base class for failures reported by the Tandoor service."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NativeImportError(TandoorError):
    """Raised when Tandoor's own URL importer returns no usable recipe."""

    pass


class AuthError(TandoorError):
    """Raised when Tandoor rejects both authentication schemes."""

    pass


class CreateError(TandoorError):
    """Raised when Tandoor refuses to persist a recipe.

    ``parsed`` keeps the already-parsed candidate so the caller does not lose it.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
        parsed: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status_code=status_code, body=body)
        self.parsed = parsed


class UploadError(TandoorError):
    """Raised when attaching an image to a created recipe fails."""

    pass

from typing import Optional

INVALID_KEY_MARKER = "Requested entity was not found."
SESSION_BUSY_MESSAGE = "Hay una operación en curso para esta escena."


class EventRenderError(Exception):
    """Base class for errors raised by the render pipeline."""
    pass


class InvalidApiKeyError(EventRenderError):
    def __init__(self, message: str = "Invalid API Key. Please select a valid API key from a paid GCP project."):
        super().__init__(message)


class MissingInputError(EventRenderError):
    pass


class ImageReadError(EventRenderError):
    pass


class SceneDetectionError(EventRenderError):
    pass


class PromptRefinementError(EventRenderError):
    pass


class NoImageInResponseError(EventRenderError):
    def __init__(self, message: str, model_text: Optional[str] = None):
        super().__init__(message)
        self.model_text = model_text


class InvalidLightingConfigError(EventRenderError):
    pass


def is_invalid_key_error(error: Exception) -> bool:
    return isinstance(error, InvalidApiKeyError) or INVALID_KEY_MARKER in str(error)


class SessionBusyError(EventRenderError):
    def __init__(self, message: str = SESSION_BUSY_MESSAGE):
        super().__init__(message)

"""Exception types raised across the analysis service."""


class WebscoreError(Exception):
    """Base class for service errors."""


class URLValidationError(WebscoreError):
    """Submitted URL list was rejected before a batch was created."""


class RendererStartupError(WebscoreError):
    """A browser instance could not be launched. Fatal to the batch."""


class NavigationError(WebscoreError):
    """Loading a page failed or timed out. Fatal to that page only."""

    def __init__(self, message: str, error_type: str = "navigation"):
        super().__init__(message)
        self.error_type = error_type

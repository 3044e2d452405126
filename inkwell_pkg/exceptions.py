"""
Exception hierarchy for Inkwell.

Errors scoped to a single content file, page or copy item are caught and logged
where they happen; only ConfigurationError is meant to stop a build.
"""


class InkwellError(Exception):
    """Base class for every error raised by Inkwell."""


class ConfigurationError(InkwellError):
    """Raised when settings fail validation before any processing starts."""

    def __init__(self, issues):
        if isinstance(issues, str):
            issues = [issues]
        self.issues = list(issues)
        super().__init__("Invalid configuration: " + "; ".join(self.issues))


class FileAccessError(InkwellError):
    """A content root or content file is missing or unreadable."""

    def __init__(self, message, path=None):
        self.path = path
        if path:
            message = f"{message} File path: {path}"
        super().__init__(message)


class ContentProcessingError(InkwellError):
    """Unexpected failure while turning one content file into a page."""

    def __init__(self, message, path=None):
        self.path = path
        if path:
            message = f"{message} Content path: {path}"
        super().__init__(message)


class FrontMatterParseError(InkwellError):
    """The front matter block could not be deserialized."""

    def __init__(self, message, path=None):
        self.path = path
        if path:
            message = f"{message} Content path: {path}"
        super().__init__(message)


class RenderFetchError(InkwellError):
    """The renderer could not produce HTML for a page URL."""

    def __init__(self, message, url=None, status_code=None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)

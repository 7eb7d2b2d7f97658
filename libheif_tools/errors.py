"""
Exceptions raised by the libheif fetch pipeline.

Filesystem failures are not wrapped: they surface as the builtin OSError.
"""


class LibheifToolsError(Exception):
    """Base class for pipeline failures."""


class FetchError(LibheifToolsError):
    """The release archive could not be retrieved."""

    def __init__(self, status: int | None, reason: str, url: str = ""):
        self.status = status
        self.reason = reason
        self.url = url
        if status is None:
            message = f"failed request: {reason}"
        else:
            message = f"failed response: {status} {reason}"
        if url:
            message += f" ({url})"
        super().__init__(message)


class ArchiveError(LibheifToolsError):
    """The archive stream is malformed, truncated or unsafe."""


class EsbuildNotFoundError(LibheifToolsError):
    """No esbuild executable could be located."""


class TransformError(LibheifToolsError):
    """esbuild could not transform a JavaScript source."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)


class BundleError(LibheifToolsError):
    """esbuild could not produce a bundle."""

    def __init__(self, message: str, stderr: str = "", outfile: str = ""):
        self.stderr = stderr
        self.outfile = outfile
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)

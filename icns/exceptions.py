"""Exception hierarchy for icns.

Every error carries a stable ``code`` (the envelope error code) and an
optional ``details`` mapping for diagnostics. The CLI maps codes to process
exit statuses with :func:`exit_code_for`.
"""

from __future__ import annotations

from typing import Any

EXIT_CODES: dict[str, int] = {
    "INVALID_USAGE": 2,
    "NOT_FOUND": 3,
    "API_ERROR": 4,
    "RENDER_ERROR": 5,
    "FS_ERROR": 6,
    "OUTPUT_EXISTS": 6,
    "BROWSER_ERROR": 7,
    "AMBIGUOUS": 8,
}


def exit_code_for(code: str | None) -> int:
    """Return the process exit status for an envelope error code."""
    if code is None:
        return 1
    return EXIT_CODES.get(code, 1)


class IcnsError(Exception):
    """Base exception for all icns errors."""

    code = "ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class UsageError(IcnsError):
    """Malformed input; the caller's fault and never retried."""

    code = "INVALID_USAGE"


class ConfigError(UsageError):
    """Invalid configuration value or configuration file."""


class ManifestError(UsageError):
    """Invalid render manifest."""


class NotFoundError(IcnsError):
    """No icon matches the request."""

    code = "NOT_FOUND"


class AmbiguousError(IcnsError):
    """Several icons match and no automatic pick was requested."""

    code = "AMBIGUOUS"

    def __init__(self, message: str, candidates: list[dict[str, Any]]) -> None:
        super().__init__(message, details={"candidates": candidates})
        self.candidates = candidates


class LocalUnavailableError(NotFoundError):
    """The local snapshot is required but has not been synchronized."""

    def __init__(self, reason: str = "Local index is required for this request") -> None:
        super().__init__(f"{reason}. Run `icns index sync` to create local cache.")
        self.reason = reason


class TransportError(IcnsError):
    """The remote catalog could not be reached or answered with an error.

    Attributes:
        url: Requested URL
        status: HTTP status code, ``None`` for network-level failures
        body: Response body (truncated) when the server answered
    """

    code = "API_ERROR"

    def __init__(
        self,
        url: str,
        status: int | None = None,
        body: str | None = None,
        reason: str | None = None,
    ) -> None:
        if status is not None:
            message = f"HTTP {status} for {url}"
        else:
            message = f"Request failed for {url}: {reason or 'unknown error'}"
        details: dict[str, Any] = {"url": url, "status": status, "body": body}
        if reason:
            details["reason"] = reason
        super().__init__(message, details=details)
        self.url = url
        self.status = status
        self.body = body
        self.reason = reason


class RenderError(IcnsError):
    """SVG rasterization failed."""

    code = "RENDER_ERROR"


class FilesystemError(IcnsError):
    """Reading or writing a local file failed."""

    code = "FS_ERROR"


class OutputExistsError(FilesystemError):
    """Output file exists and overwriting was not requested."""

    code = "OUTPUT_EXISTS"

    def __init__(self, path: str) -> None:
        super().__init__(f"Refusing to overwrite existing file: {path}", details={"path": path})
        self.path = path


class BrowserError(IcnsError):
    """The system browser could not be opened."""

    code = "BROWSER_ERROR"

"""Exception hierarchy for the exploration engine.

Only FatalInitError is allowed to escape a session. Every other error is
caught at the boundary of the component that raised it and converted into
a recorded outcome.
"""


class ExplorerError(Exception):
    """Base exception for all explorer errors.

    Attributes:
        message: Error description
        details: Additional context
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FatalInitError(ExplorerError):
    """Browser, page target or seed navigation could not be set up.

    Aborts the session and propagates to the caller.
    """

    def __init__(self, message: str, url: str | None = None, details: dict | None = None):
        super().__init__(f"Session initialization failed: {message}", details)
        self.url = url


class BrowserError(ExplorerError):
    """Error from a DevTools operation.

    Attributes:
        operation: The browser operation that failed
        url: URL being accessed when the error occurred
    """

    def __init__(
        self,
        message: str,
        operation: str = "unknown",
        url: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(f"Browser error during {operation}: {message}", details)
        self.operation = operation
        self.url = url


class NavigationError(BrowserError):
    """A non-seed navigation failed or timed out."""

    def __init__(self, message: str, url: str | None = None, details: dict | None = None):
        super().__init__(message, operation="navigate", url=url, details=details)


class ExtractionTimeout(ExplorerError):
    """The page did not settle within the configured bound.

    Extraction proceeds with a best-effort snapshot.
    """

    def __init__(self, url: str, waited: float):
        super().__init__(f"Page did not settle within {waited:.1f}s: {url}", {"url": url})
        self.url = url
        self.waited = waited


class ActionResolutionError(ExplorerError):
    """No resolution strategy could turn a decision into a browser action.

    Attributes:
        target: Human-readable description of what was being resolved
        attempts: Names of the strategies that were tried
    """

    def __init__(self, message: str, target: str | None = None, attempts: list[str] | None = None):
        super().__init__(message, {"target": target, "attempts": attempts or []})
        self.target = target
        self.attempts = attempts or []


class OracleParseError(ExplorerError):
    """The oracle reply could not be parsed into a valid decision.

    Attributes:
        raw: The raw reply text (may be truncated by callers when logged)
    """

    def __init__(self, message: str, raw: str = ""):
        super().__init__(f"Invalid oracle reply: {message}", {"raw": raw[:500]})
        self.raw = raw


class LLMError(ExplorerError):
    """Error from LLM communication.

    Attributes:
        provider: LLM provider (e.g., "openai")
        status_code: HTTP status code if applicable
    """

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(f"LLM error ({provider}): {message}", details)
        self.provider = provider
        self.status_code = status_code


class ConfigError(ExplorerError):
    """Configuration is invalid or missing.

    Attributes:
        config_key: The configuration key that caused the error
    """

    def __init__(self, message: str, config_key: str | None = None, details: dict | None = None):
        super().__init__(f"Configuration error: {message}", details)
        self.config_key = config_key

from typing import Optional


class GlobFilterError(Exception):
    # base exception for all application-specific errors.
    pass


class PatternError(GlobFilterError):
    # a glob pattern that cannot be compiled for single-segment matching.
    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"invalid pattern {pattern!r}: {reason}")


class WalkError(GlobFilterError):
    # the directory listing primitive failed for a specific path.
    def __init__(self, path: str, cause: Optional[OSError] = None):
        self.path = path
        self.cause = cause
        detail = (cause.strerror or str(cause)) if cause is not None else "listing failed"
        super().__init__(f"cannot list '{path}': {detail}")


class ConfigError(GlobFilterError):
    # errors related to configuration.
    pass


class OutputError(GlobFilterError):
    # errors during output operations.
    pass

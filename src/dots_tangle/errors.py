class TangleToolError(Exception):
    """Base for every failure that ends a run with exit code 1."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ConfigError(TangleToolError):
    pass


class MissingSourceError(TangleToolError):
    pass


class DiscoveryError(TangleToolError):
    pass


class TangleError(TangleToolError):
    pass


class CompileError(TangleToolError):
    pass


class CleanError(TangleToolError):
    pass

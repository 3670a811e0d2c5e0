from __future__ import annotations


class BuildError(Exception):
    """Base class for failures that abort or degrade a blog build."""


class SourceNotFoundError(BuildError):
    pass


class SourceReadError(BuildError):
    pass


class ConfigError(BuildError):
    pass


class RenderError(BuildError):
    """A single post could not be rendered; the rest of the build continues."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason

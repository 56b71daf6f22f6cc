from __future__ import annotations


class BuildError(Exception):
    """Base class for errors that abort a build."""


class ValidationError(BuildError):
    def __init__(self, source: str, field: str, message: str) -> None:
        self.source = source
        self.field = field
        super().__init__(f"{source}: {message} (field: {field})")


class TaxonomyCollisionError(ValidationError):
    pass


class ConfigurationError(BuildError):
    pass

"""Exception hierarchy for the analysis pipeline."""

from __future__ import annotations


class AstGraphError(Exception):
    """Base class for all astgraph errors.

    ``stage`` names the pipeline stage that failed (e.g. "parsing files"),
    ``path`` the source file involved, when there is one.
    """

    def __init__(self, message: str, *, stage: str | None = None,
                 path: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.path = path

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class ExtractionError(AstGraphError):
    """A source file could not be read, is not Go, or has a syntax error."""

    def __init__(self, message: str, *, stage: str | None = None,
                 path: str | None = None,
                 failures: list[tuple[str, str]] | None = None):
        super().__init__(message, stage=stage, path=path)
        self.failures = failures or []


class NotReadyError(AstGraphError):
    """A stage was invoked before the stage it depends on completed."""


class StoreError(AstGraphError):
    """The graph store rejected a write."""


class NotFoundError(AstGraphError, KeyError):
    """A node id or name is absent from the store."""

    def __str__(self) -> str:
        return AstGraphError.__str__(self)

"""Exceptions raised by dotkeep operations."""


class DotkeepError(Exception):
    """Base class for errors reported to the operator."""


class PrerequisiteError(DotkeepError):
    """A required program or artifact is missing."""


class InvalidOverrideError(DotkeepError):
    """A path override was not absolute."""


class RepositoryError(DotkeepError):
    """The dotfiles repository is missing or a git command failed."""


class PipelineError(DotkeepError):
    """A stage of the archive/cipher pipeline exited non-zero."""

    def __init__(self, message: str, stage: str = "", stderr: str = ""):
        super().__init__(message)
        self.stage = stage
        self.stderr = stderr

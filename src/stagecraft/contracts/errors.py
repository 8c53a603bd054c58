"""Exception hierarchy for stagecraft.

Structural defects of a pipeline are never exceptions; they are reported
in a ValidationResult. Exceptions are reserved for caller mistakes
(editing a stage that does not exist) and unreadable documents.
"""


class StagecraftError(Exception):
    """Base class for all stagecraft errors."""

    pass


class StageEditError(StagecraftError, ValueError):
    """Raised when an editor operation cannot be applied to a stage list.

    Examples: deleting an unknown stage, creating a stage with an id that
    is already taken, connecting a stage to itself.
    """

    pass


class PipelineLoadError(StagecraftError):
    """Raised when a pipeline document cannot be read or parsed.

    The underlying YAML/JSON error is chained as __cause__.
    """

    pass

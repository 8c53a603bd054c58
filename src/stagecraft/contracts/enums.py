"""Status codes, kinds and modes shared by the graph model.

Values match the keys used by the pipeline editor so documents round-trip
without translation.
"""

from enum import StrEnum


class BranchType(StrEnum):
    """How a stage hands off to the stages it connects to.

    SEQUENTIAL: One successor after another (the default for new stages)
    PARALLEL: All successors start together
    CONDITIONAL: Successors split into success and failure branches
    """

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    CONDITIONAL = "conditional"


class EdgeKind(StrEnum):
    """Connection kind of a rendered edge.

    Derived from the source stage's branch type.
    """

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    CONDITIONAL = "conditional"


class ConditionType(StrEnum):
    """What decides which branch of a conditional stage is taken."""

    TEST_PASSED = "test-passed"
    MANUAL_APPROVAL = "manual-approval"
    CUSTOM_SCRIPT = "custom-script"


class LayoutDirection(StrEnum):
    """Direction in which ranks advance.

    TB: Top-to-bottom, ranks are rows
    LR: Left-to-right, ranks are columns
    """

    TB = "TB"
    LR = "LR"


class IssueSeverity(StrEnum):
    """Severity of a validation finding.

    Only ERROR findings make a pipeline invalid.
    """

    ERROR = "error"
    WARNING = "warning"


class AgentRole(StrEnum):
    """Role of an agent in the registry."""

    IMPLEMENTER = "implementer"
    ARCHITECT = "architect"
    TESTER = "tester"
    REVIEWER = "reviewer"
    DOCS = "docs"


class AgentStatus(StrEnum):
    """Live status reported by the agent registry."""

    RUNNING = "running"
    THINKING = "thinking"
    WAITING = "waiting"
    IDLE = "idle"
    ERROR = "error"

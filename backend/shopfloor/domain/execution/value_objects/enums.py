"""
Execution Enums

Status and classification enums for manufacturing orders, order operations,
quality checks and labor assignments. Each lifecycle status carries its own
transition table; managers consult ``can_transition_to`` before any write.
"""

from enum import Enum


class OrderStatus(str, Enum):
    """
    Manufacturing order status.

    Valid transitions:
    - PLANNED → RELEASED, CANCELLED
    - RELEASED → IN_PROGRESS, CANCELLED
    - IN_PROGRESS → COMPLETED, CANCELLED
    - COMPLETED, CANCELLED → (terminal)
    """

    PLANNED = "PLANNED"
    RELEASED = "RELEASED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def allowed_transitions(self) -> frozenset["OrderStatus"]:
        return _ORDER_TRANSITIONS[self]

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return target in self.allowed_transitions

    @property
    def is_terminal(self) -> bool:
        return not self.allowed_transitions

    @property
    def is_open(self) -> bool:
        """Orders still expected to finish; only these count as overdue or take edits."""
        return self not in {OrderStatus.COMPLETED, OrderStatus.CANCELLED}


_ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PLANNED: frozenset({OrderStatus.RELEASED, OrderStatus.CANCELLED}),
    OrderStatus.RELEASED: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),  # Terminal state
    OrderStatus.CANCELLED: frozenset(),  # Terminal state
}


class OperationStatus(str, Enum):
    """
    Order operation status.

    Valid transitions:
    - WAITING → IN_PROGRESS, BLOCKED
    - IN_PROGRESS → COMPLETED, BLOCKED
    - BLOCKED → WAITING, IN_PROGRESS
    - COMPLETED → (terminal)
    """

    WAITING = "WAITING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"

    @property
    def allowed_transitions(self) -> frozenset["OperationStatus"]:
        return _OPERATION_TRANSITIONS[self]

    def can_transition_to(self, target: "OperationStatus") -> bool:
        return target in self.allowed_transitions

    @property
    def is_terminal(self) -> bool:
        return not self.allowed_transitions


_OPERATION_TRANSITIONS: dict[OperationStatus, frozenset[OperationStatus]] = {
    OperationStatus.WAITING: frozenset(
        {OperationStatus.IN_PROGRESS, OperationStatus.BLOCKED}
    ),
    OperationStatus.IN_PROGRESS: frozenset(
        {OperationStatus.COMPLETED, OperationStatus.BLOCKED}
    ),
    OperationStatus.BLOCKED: frozenset(
        {OperationStatus.WAITING, OperationStatus.IN_PROGRESS}
    ),
    OperationStatus.COMPLETED: frozenset(),  # Terminal state
}


class QualityCheckStatus(str, Enum):
    """
    Quality check status.

    No state is terminal: a finished check may be reopened for re-inspection.

    Valid transitions:
    - PENDING → IN_PROGRESS, SKIPPED
    - IN_PROGRESS → PASSED, FAILED, PENDING
    - PASSED, FAILED, SKIPPED → IN_PROGRESS
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    @property
    def allowed_transitions(self) -> frozenset["QualityCheckStatus"]:
        return _QUALITY_TRANSITIONS[self]

    def can_transition_to(self, target: "QualityCheckStatus") -> bool:
        return target in self.allowed_transitions

    @property
    def is_finished(self) -> bool:
        """Whether the check has an inspection outcome."""
        return self in {QualityCheckStatus.PASSED, QualityCheckStatus.FAILED}


_QUALITY_TRANSITIONS: dict[QualityCheckStatus, frozenset[QualityCheckStatus]] = {
    QualityCheckStatus.PENDING: frozenset(
        {QualityCheckStatus.IN_PROGRESS, QualityCheckStatus.SKIPPED}
    ),
    QualityCheckStatus.IN_PROGRESS: frozenset(
        {
            QualityCheckStatus.PASSED,
            QualityCheckStatus.FAILED,
            QualityCheckStatus.PENDING,
        }
    ),
    QualityCheckStatus.PASSED: frozenset({QualityCheckStatus.IN_PROGRESS}),
    QualityCheckStatus.FAILED: frozenset({QualityCheckStatus.IN_PROGRESS}),
    QualityCheckStatus.SKIPPED: frozenset({QualityCheckStatus.IN_PROGRESS}),
}


class QualityCheckResult(str, Enum):
    """Inspection result recorded against a quality check."""

    PASS = "PASS"
    FAIL = "FAIL"
    CONDITIONAL_PASS = "CONDITIONAL_PASS"
    NOT_APPLICABLE = "NOT_APPLICABLE"

    @property
    def resulting_status(self) -> QualityCheckStatus:
        """Status a check takes when this result is recorded."""
        return _RESULT_STATUS[self]


_RESULT_STATUS: dict[QualityCheckResult, QualityCheckStatus] = {
    QualityCheckResult.PASS: QualityCheckStatus.PASSED,
    QualityCheckResult.FAIL: QualityCheckStatus.FAILED,
    QualityCheckResult.CONDITIONAL_PASS: QualityCheckStatus.PASSED,
    QualityCheckResult.NOT_APPLICABLE: QualityCheckStatus.SKIPPED,
}


class QualityCheckType(str, Enum):
    """Kind of inspection a quality check performs."""

    VISUAL = "VISUAL"
    DIMENSIONAL = "DIMENSIONAL"
    FUNCTIONAL = "FUNCTIONAL"
    MATERIAL = "MATERIAL"
    SAFETY = "SAFETY"
    CUSTOM = "CUSTOM"


class QualityOverallStatus(str, Enum):
    """Roll-up status of all quality checks on an order."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PASSED = "PASSED"
    FAILED = "FAILED"
    MIXED = "MIXED"


class LaborStatus(str, Enum):
    """
    Labor assignment status.

    Labor moves are permissive toggles driven by the clock operations
    (clock in/out, break start/end); there is no edge table.
    """

    ASSIGNED = "ASSIGNED"
    ACTIVE = "ACTIVE"
    ON_BREAK = "ON_BREAK"
    OFFLINE = "OFFLINE"


class LaborRole(str, Enum):
    """Role an operator plays on an operation."""

    PRIMARY = "PRIMARY"
    ASSISTANT = "ASSISTANT"

"""Values passed between the stages of a single control cycle."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class WorkloadRef:
    """Identifies the deployment being scaled."""

    namespace: str
    name: str

    def __str__(self):
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class PerInstanceUsage:
    """Usage of one pod, summed across its containers."""

    name: str
    cpu_millicores: float
    memory_bytes: float
    cpu_request_millicores: Optional[float] = None
    memory_request_bytes: Optional[float] = None


@dataclass(frozen=True)
class UsageStats:
    """Workload-level averages for one sampling pass."""

    avg_cpu: float
    avg_memory: float
    instances: int = 0


@dataclass(frozen=True)
class ReplicaState:
    """Declared replica count, concurrency token and pod selector of a workload."""

    current: int
    resource_version: str
    selector: str = ""


class ScalingAction(Enum):
    SCALE_UP = "scale_up"
    SCALE_DOWN = "scale_down"
    NO_ACTION = "no_action"


@dataclass(frozen=True)
class ScalingDecision:
    action: ScalingAction
    current: int
    desired: int
    reason: str = ""


class ApplyOutcome(Enum):
    UNCHANGED = "unchanged"
    APPLIED = "applied"
    WOULD_APPLY = "would_apply"  # Dry-run marker.


class CycleOutcome(Enum):
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    NO_ACTION = "no_action"
    CAPPED = "capped"
    APPLIED = "applied"
    WOULD_APPLY = "would_apply"
    UNCHANGED = "unchanged"
    ACTUATION_FAILED = "actuation_failed"


@dataclass
class CycleResult:
    """What happened during one pass of the control loop."""

    outcome: CycleOutcome
    stats: Optional[UsageStats] = None
    decision: Optional[ScalingDecision] = None
    error: Optional[BaseException] = None

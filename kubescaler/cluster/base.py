from abc import ABC, abstractmethod
from kubescaler.models import PerInstanceUsage, ReplicaState, WorkloadRef
from typing import List

class ClusterClient(ABC):
    """Reads and writes the declared state of a workload."""

    @abstractmethod
    async def get_workload_state(self, ref: WorkloadRef) -> ReplicaState:
        """
        Returns the declared replica count, concurrency token and pod selector.
        Raises NotFoundError, TransientError or FatalError.
        """
        pass

    @abstractmethod
    async def update_workload_replicas(self, ref: WorkloadRef, resource_version: str, desired: int) -> None:
        """
        Writes `desired` as the replica count, guarded by `resource_version`.
        Raises ConflictError, NotFoundError, TransientError or FatalError.
        """
        pass

class MetricsClient(ABC):
    """Reads live resource usage of the pods behind a workload."""

    @abstractmethod
    async def list_instance_usage(self, namespace: str, selector: str) -> List[PerInstanceUsage]:
        """Returns one entry per live pod matching `selector`. Raises TransientError."""
        pass

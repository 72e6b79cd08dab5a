from kubescaler.cluster.base import ClusterClient, MetricsClient
from kubescaler.constants import DEFAULT_CALL_TIMEOUT, MEBIBYTE, METRICS_MODE_ABSOLUTE, METRICS_MODE_UTILIZATION
from kubescaler.errors import NotFoundError
from kubescaler.models import PerInstanceUsage, ReplicaState, UsageStats, WorkloadRef
from kubescaler.utils.time import call_with_timeout
from typing import List, Sequence, Tuple

def average_usage(usages: Sequence[PerInstanceUsage], mode: str = METRICS_MODE_ABSOLUTE) -> UsageStats:
    """
    Averages per-pod usage into workload-level figures.

    In absolute mode CPU is in millicores and memory in MiB. In utilization mode both are
    percentages of the pod's resource requests. Pods missing either request are left out
    and not counted in `instances`.
    Raises NotFoundError when nothing is left to average.
    """

    if not usages:
        raise NotFoundError("no live instances")

    if mode == METRICS_MODE_UTILIZATION:
        sized = [u for u in usages if u.cpu_request_millicores and u.memory_request_bytes]
        if not sized:
            raise NotFoundError("no live instances with cpu and memory requests")
        avg_cpu = sum(u.cpu_millicores / u.cpu_request_millicores for u in sized) / len(sized) * 100
        avg_memory = sum(u.memory_bytes / u.memory_request_bytes for u in sized) / len(sized) * 100
        return UsageStats(avg_cpu, avg_memory, len(sized))

    count = len(usages)
    avg_cpu = sum(u.cpu_millicores for u in usages) / count
    avg_memory = sum(u.memory_bytes for u in usages) / count / MEBIBYTE
    return UsageStats(avg_cpu, avg_memory, count)

class MetricsCollector:
    """Resolves a workload's pods and reduces their live usage to one UsageStats. Read-only."""

    def __init__(self,
                 cluster: ClusterClient,
                 metrics: MetricsClient,
                 call_timeout: float = DEFAULT_CALL_TIMEOUT,
                 mode: str = METRICS_MODE_ABSOLUTE):
        self.cluster = cluster
        self.metrics = metrics
        self.call_timeout = call_timeout
        self.mode = mode

    async def sample(self, ref: WorkloadRef) -> Tuple[ReplicaState, UsageStats]:
        """Reads the workload state and averages the usage of the pods it selects."""

        state = await call_with_timeout(self.cluster.get_workload_state(ref), self.call_timeout, f"reading {ref}")
        usages = await self.list_usage(ref, state.selector)

        try:
            return state, average_usage(usages, self.mode)
        except NotFoundError as e:
            raise NotFoundError(f"{ref}: {e}") from e

    async def collect(self, ref: WorkloadRef) -> UsageStats:
        _, stats = await self.sample(ref)
        return stats

    async def list_usage(self, ref: WorkloadRef, selector: str) -> List[PerInstanceUsage]:
        return await call_with_timeout(self.metrics.list_instance_usage(ref.namespace, selector),
                                       self.call_timeout, f"listing usage of {ref}")

"""In-memory stand-ins for the cluster and metrics collaborators."""

import asyncio

from kubescaler.cluster.base import ClusterClient, MetricsClient
from kubescaler.errors import ConflictError
from kubescaler.logger import ScalerLogger
from kubescaler.models import PerInstanceUsage, ReplicaState

MIB = 1024 * 1024

def pod(name, cpu, memory_mib, cpu_request=None, memory_request_mib=None):
    return PerInstanceUsage(name, cpu, memory_mib * MIB, cpu_request,
                            memory_request_mib * MIB if memory_request_mib is not None else None)

class FakeCluster(ClusterClient, MetricsClient):
    """
    Holds one deployment. `state_errors`, `update_errors` and `usage_errors` are lists of
    exceptions raised (in order) by the matching call before it starts succeeding.
    """

    def __init__(self, replicas=2, usages=None, selector="app=web"):
        self.replicas = replicas
        self.version = 1
        self.selector = selector
        self.usages = list(usages or [])

        self.state_errors = []
        self.update_errors = []
        self.usage_errors = []

        self.state_calls = 0
        self.usage_calls = 0
        self.updates = []  # (resource_version, desired) of every accepted write.
        self.update_attempts = 0
        self.delay = 0.0

    async def get_workload_state(self, ref):
        self.state_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.state_errors:
            raise self.state_errors.pop(0)
        return ReplicaState(self.replicas, str(self.version), self.selector)

    async def update_workload_replicas(self, ref, resource_version, desired):
        self.update_attempts += 1
        if self.update_errors:
            error = self.update_errors.pop(0)
            # Emulate another writer bumping the object.
            if isinstance(error, ConflictError):
                self.version += 1
            raise error
        if resource_version != str(self.version):
            raise ConflictError(f"stale resource version {resource_version}")
        self.replicas = desired
        self.version += 1
        self.updates.append((resource_version, desired))

    async def list_instance_usage(self, namespace, selector):
        self.usage_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.usage_errors:
            raise self.usage_errors.pop(0)
        return list(self.usages)

def quiet_logger(name="test"):
    logger = ScalerLogger(name)
    logger.setLevel(100)
    return logger

import asyncio

from kubescaler.cluster.base import ClusterClient
from kubescaler.constants import DEFAULT_CALL_TIMEOUT, DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_BACKOFF
from kubescaler.errors import ActuationFailed, ConflictError
from kubescaler.logger import ScalerLogger
from kubescaler.models import ApplyOutcome, WorkloadRef
from kubescaler.utils.time import call_with_timeout
from typing import Optional

class ScaleActuator:
    """
    Writes a desired replica count to the cluster.

    Every attempt re-reads the workload for a fresh concurrency token. A write rejected
    with a conflict is retried with the same target up to `max_attempts` times, sleeping
    `retry_backoff * attempt` seconds in between, before giving up with ActuationFailed.
    Other errors propagate unchanged.
    """

    def __init__(self,
                 cluster: ClusterClient,
                 call_timeout: float = DEFAULT_CALL_TIMEOUT,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 retry_backoff: float = DEFAULT_RETRY_BACKOFF,
                 logger: Optional[ScalerLogger] = None):
        self.cluster = cluster
        self.call_timeout = call_timeout
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff
        self.logger = logger or ScalerLogger("actuator")

    async def apply(self, ref: WorkloadRef, desired: int, dry_run: bool = False) -> ApplyOutcome:
        """Returns UNCHANGED, APPLIED, or WOULD_APPLY when `dry_run` kept the cluster untouched."""

        for attempt in range(1, self.max_attempts + 1):
            state = await call_with_timeout(self.cluster.get_workload_state(ref), self.call_timeout, f"reading {ref}")

            if state.current == desired:
                self.logger.std_log("%s already has %d replicas, nothing to apply.", ref, desired)
                return ApplyOutcome.UNCHANGED

            if dry_run:
                self.logger.std_log("Dry-run: would scale %s from %d to %d replicas.", ref, state.current, desired)
                return ApplyOutcome.WOULD_APPLY

            try:
                await call_with_timeout(
                    self.cluster.update_workload_replicas(ref, state.resource_version, desired),
                    self.call_timeout,
                    f"scaling {ref}",
                )
            except ConflictError as e:
                self.logger.std_log("Conflict scaling %s (attempt %d/%d): %s", ref, attempt, self.max_attempts, e)
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_backoff * attempt)
                continue

            self.logger.std_log("Scaled %s from %d to %d replicas.", ref, state.current, desired)
            return ApplyOutcome.APPLIED

        raise ActuationFailed(f"gave up scaling {ref} to {desired} after {self.max_attempts} conflicting attempts",
                              attempts=self.max_attempts)

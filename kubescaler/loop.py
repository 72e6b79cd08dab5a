import asyncio
import async_timeout
import traceback

from kubescaler.cluster import KubernetesCluster
from kubescaler.config import ScalerConfig
from kubescaler.constants import CYCLE_CSV_HEADER
from kubescaler.errors import ActuationFailed, NotFoundError, ScalerError
from kubescaler.logger import ScalerLogger
from kubescaler.metrics import MetricsCollector
from kubescaler.models import ApplyOutcome, CycleOutcome, CycleResult, ScalingAction
from kubescaler.scaling import DecisionEngine, ScaleActuator
from typing import Optional

_APPLY_OUTCOMES = {
    ApplyOutcome.APPLIED: CycleOutcome.APPLIED,
    ApplyOutcome.WOULD_APPLY: CycleOutcome.WOULD_APPLY,
    ApplyOutcome.UNCHANGED: CycleOutcome.UNCHANGED,
}

class ControlLoop:
    """
    Runs collect -> decide -> act on a fixed cadence until `stop()` is called.

    Cycles never overlap. A failing cycle is logged and abandoned; the next one starts
    on schedule. Stopping wakes the sleep immediately and gives an in-flight cycle
    `config.grace_period` seconds before it is cancelled.
    """

    def __init__(self,
                 config: ScalerConfig,
                 collector: MetricsCollector,
                 engine: DecisionEngine,
                 actuator: ScaleActuator,
                 logger: Optional[ScalerLogger] = None):
        self.config = config
        self.collector = collector
        self.engine = engine
        self.actuator = actuator
        self.logger = logger or ScalerLogger(f"{config.namespace}_{config.deployment}")

        self._stop_event = asyncio.Event()
        self.cycles = 0

    @classmethod
    def from_config(cls, config: ScalerConfig, cluster=None, metrics=None, logger=None):
        """Wires a loop around `cluster` (a KubernetesCluster built from `config` when omitted)."""

        config.validate()

        if cluster is None:
            cluster = KubernetesCluster.from_config(config)

        logger = logger or ScalerLogger(f"{config.namespace}_{config.deployment}", dirname=config.log_dir,
                                        csv_header=CYCLE_CSV_HEADER, level=config.log_level_value)

        collector = MetricsCollector(cluster, metrics or cluster, config.call_timeout, config.metrics_mode)
        actuator = ScaleActuator(cluster, config.call_timeout, config.max_attempts, config.retry_backoff, logger)
        return cls(config, collector, DecisionEngine.from_config(config), actuator, logger)

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Requests shutdown. Safe to call from a signal handler."""

        if not self._stop_event.is_set():
            self.logger.std_log("Shutdown requested.")
        self._stop_event.set()

    async def run_once(self) -> CycleResult:
        """Drives exactly one collect -> decide -> act pass. Only unexpected exceptions escape."""

        ref = self.config.workload

        try:
            state, stats = await self.collector.sample(ref)
        except NotFoundError as e:
            self.logger.std_log("Skipping cycle, workload not found: %s", e)
            return self._record(CycleResult(CycleOutcome.NOT_FOUND, error=e))
        except ScalerError as e:
            self.logger.std_log("Skipping cycle, error getting metrics: %s", e)
            return self._record(CycleResult(CycleOutcome.TRANSIENT, error=e))

        self.logger.std_log("%s: avg cpu %.2f, avg memory %.2f over %d pods, %d replicas.",
                            ref, stats.avg_cpu, stats.avg_memory, stats.instances, state.current)

        decision = self.engine.decide(stats, state.current)
        result = CycleResult(CycleOutcome.NO_ACTION, stats, decision)

        if decision.action == ScalingAction.NO_ACTION:
            self.logger.std_log("No scaling action needed (%s).", decision.reason)
            return self._record(result)

        if decision.action == ScalingAction.SCALE_UP and decision.desired > self.config.max_replicas:
            self.logger.std_log("Not scaling %s past the maximum of %d replicas (%s).",
                                ref, self.config.max_replicas, decision.reason)
            result.outcome = CycleOutcome.CAPPED
            return self._record(result)

        self.logger.std_log("Decided %s: %d -> %d replicas (%s).",
                            decision.action.value, decision.current, decision.desired, decision.reason)

        try:
            outcome = await self.actuator.apply(ref, decision.desired, self.config.dry_run)
            result.outcome = _APPLY_OUTCOMES[outcome]
        except ActuationFailed as e:
            self.logger.std_log("Scaling failed, retrying next cycle: %s", e)
            result.outcome, result.error = CycleOutcome.ACTUATION_FAILED, e
        except NotFoundError as e:
            self.logger.std_log("Scaling failed, workload not found: %s", e)
            result.outcome, result.error = CycleOutcome.NOT_FOUND, e
        except ScalerError as e:
            self.logger.std_log("Scaling failed: %s", e)
            result.outcome, result.error = CycleOutcome.TRANSIENT, e

        return self._record(result)

    async def run(self) -> None:
        """Repeats cycles until stopped. Cycle starts are `config.interval` seconds apart."""

        loop = asyncio.get_running_loop()
        self.logger.std_log("Starting autoscaler for %s every %gs%s.", self.config.workload, self.config.interval,
                            " (dry-run)" if self.config.dry_run else "")

        while not self.stopping:
            started = loop.time()
            await self._run_cycle_until_stopped()

            if self.stopping:
                break
            await self._sleep(self.config.interval - (loop.time() - started))

        self.logger.std_log("Autoscaler for %s stopped after %d cycles.", self.config.workload, self.cycles)

    async def _guarded_cycle(self) -> Optional[CycleResult]:
        try:
            return await self.run_once()
        except Exception as e:
            self.logger.error_log("Unexpected error in cycle: %s\n%s", e, traceback.format_exc())
            return None
        finally:
            self.cycles += 1

    async def _run_cycle_until_stopped(self) -> Optional[CycleResult]:
        cycle = asyncio.ensure_future(self._guarded_cycle())
        stopper = asyncio.ensure_future(self._stop_event.wait())

        try:
            await asyncio.wait({cycle, stopper}, return_when=asyncio.FIRST_COMPLETED)

            if not cycle.done():
                self.logger.std_log("Waiting up to %gs for the running cycle.", self.config.grace_period)
                await asyncio.wait({cycle}, timeout=self.config.grace_period)

            if not cycle.done():
                self.logger.std_log("Abandoning the running cycle.")
                cycle.cancel()
                await asyncio.gather(cycle, return_exceptions=True)
                return None

            return cycle.result()
        finally:
            stopper.cancel()
            if not cycle.done():
                cycle.cancel()

    async def _sleep(self, seconds: float) -> None:
        """Sleeps up to `seconds`, returning early once stop is requested."""

        if seconds <= 0:
            return
        try:
            async with async_timeout.timeout(seconds):
                await self._stop_event.wait()
        except asyncio.TimeoutError:
            pass  # Slept the full interval.

    def _record(self, result: CycleResult) -> CycleResult:
        stats, decision = result.stats, result.decision
        self.logger.csv_log([
            self.config.namespace,
            self.config.deployment,
            stats.avg_cpu if stats else "",
            stats.avg_memory if stats else "",
            decision.current if decision else "",
            decision.desired if decision else "",
            decision.action.value if decision else "",
            result.outcome.value,
        ])
        return result

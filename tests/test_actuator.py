import asyncio
import pytest

from kubescaler.errors import ActuationFailed, ConflictError, NotFoundError, TransientError
from kubescaler.models import ApplyOutcome, WorkloadRef
from kubescaler.scaling import ScaleActuator
from tests.fakes import FakeCluster, quiet_logger

REF = WorkloadRef("shop", "web")

def apply(cluster, desired, dry_run=False, **kwargs):
    kwargs.setdefault("retry_backoff", 0)
    actuator = ScaleActuator(cluster, logger=quiet_logger(), **kwargs)
    return asyncio.run(actuator.apply(REF, desired, dry_run))

def test_scales_with_current_resource_version():
    cluster = FakeCluster(replicas=2)

    assert apply(cluster, 3) == ApplyOutcome.APPLIED
    assert cluster.replicas == 3
    assert cluster.updates == [("1", 3)]

@pytest.mark.parametrize("dry_run", [False, True])
def test_noop_when_already_at_desired(dry_run):
    cluster = FakeCluster(replicas=3)

    assert apply(cluster, 3, dry_run) == ApplyOutcome.UNCHANGED
    assert cluster.update_attempts == 0

@pytest.mark.parametrize("desired", [1, 3, 10])
def test_dry_run_never_writes(desired):
    cluster = FakeCluster(replicas=2)

    assert apply(cluster, desired, dry_run=True) == ApplyOutcome.WOULD_APPLY
    assert cluster.update_attempts == 0
    assert cluster.replicas == 2

def test_dry_run_logs_intended_change(caplog):
    caplog.set_level("INFO")
    cluster = FakeCluster(replicas=2)
    actuator = ScaleActuator(cluster)

    asyncio.run(actuator.apply(REF, 3, dry_run=True))

    assert "Dry-run: would scale shop/web from 2 to 3 replicas." in caplog.text

def test_retries_conflicts_then_succeeds():
    cluster = FakeCluster(replicas=2)
    cluster.update_errors = [ConflictError("stale"), ConflictError("stale")]

    assert apply(cluster, 3, max_attempts=5) == ApplyOutcome.APPLIED
    assert cluster.update_attempts == 3
    assert cluster.state_calls == 3
    # Exactly one write went through, carrying the token read on the third attempt.
    assert cluster.updates == [("3", 3)]
    assert cluster.replicas == 3

def test_gives_up_after_max_attempts():
    cluster = FakeCluster(replicas=2)
    cluster.update_errors = [ConflictError("stale")] * 3

    with pytest.raises(ActuationFailed) as info:
        apply(cluster, 3, max_attempts=3)

    assert info.value.attempts == 3
    assert cluster.updates == []
    assert cluster.replicas == 2

def test_stops_retrying_once_another_writer_reached_target():
    cluster = FakeCluster(replicas=2)

    async def competing_write(ref, resource_version, desired):
        cluster.update_attempts += 1
        cluster.replicas = desired
        cluster.version += 1
        raise ConflictError("stale")

    cluster.update_workload_replicas = competing_write

    assert apply(cluster, 3) == ApplyOutcome.UNCHANGED
    assert cluster.update_attempts == 1

@pytest.mark.parametrize("error", [TransientError("api down"), NotFoundError("gone")])
def test_other_errors_propagate_without_retry(error):
    cluster = FakeCluster(replicas=2)
    cluster.update_errors = [error]

    with pytest.raises(type(error)):
        apply(cluster, 3)
    assert cluster.update_attempts == 1

def test_backoff_grows_between_attempts(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("kubescaler.scaling.actuator.asyncio.sleep", fake_sleep)
    cluster = FakeCluster(replicas=2)
    cluster.update_errors = [ConflictError("stale")] * 3

    with pytest.raises(ActuationFailed):
        apply(cluster, 3, max_attempts=3, retry_backoff=0.5)

    assert sleeps == [0.5, 1.0]

import os
import pytest

from kubescaler import cli
from kubescaler.cluster import KubernetesCluster
from kubescaler.errors import ConfigError
from tests.fakes import FakeCluster, pod

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # No stray .env file.
    for name in list(os.environ):
        if name.startswith("KUBESCALER_"):
            monkeypatch.delenv(name)

def test_parser_maps_flags_to_config_fields():
    args = cli.build_parser().parse_args([
        "-n", "shop", "-d", "web", "--cpu-threshold", "75", "--hysteresis", "5",
        "--interval", "1m", "--timeout", "3s", "--dry-run", "--max-replicas", "4",
    ])

    assert args.namespace == "shop"
    assert args.deployment == "web"
    assert args.cpu_threshold == 75.0
    assert args.hysteresis_margin == 5.0
    assert args.interval == "1m"
    assert args.call_timeout == "3s"
    assert args.dry_run is True
    assert args.max_replicas == 4
    assert args.memory_threshold is None

def test_missing_deployment_exits_with_one():
    assert cli.main(["--namespace", "shop"]) == 1

def test_unusable_credentials_exit_with_one(monkeypatch):
    def broken(cls, config):
        raise ConfigError("no kubeconfig")

    monkeypatch.setattr(KubernetesCluster, "from_config", classmethod(broken))

    assert cli.main(["-d", "web"]) == 1

def test_graceful_shutdown_exits_with_zero(monkeypatch):
    cluster = FakeCluster(replicas=2, usages=[pod("web-1", 85, 40)])
    monkeypatch.setattr(KubernetesCluster, "from_config", classmethod(lambda cls, config: cluster))

    async def serve_one_cycle(control):
        await control.run_once()
        control.stop()
        await control.run()

    monkeypatch.setattr(cli, "serve", serve_one_cycle)

    assert cli.main(["-d", "web", "-n", "shop", "--dry-run"]) == 0
    assert cluster.update_attempts == 0
    assert cluster.usage_calls == 1

import argparse
import asyncio
import signal

from kubescaler.config import ScalerConfig
from kubescaler.constants import METRICS_MODES
from kubescaler.errors import ConfigError
from kubescaler.logger import ScalerLogger
from kubescaler.loop import ControlLoop

def build_parser():
    parser = argparse.ArgumentParser(
        prog="kubescaler",
        description="Scales a Kubernetes deployment up or down based on the average CPU and memory usage of its pods.",
    )

    # Every default is None so unset flags leave the config file and environment values alone.
    parser.add_argument("-n", "--namespace", help="Kubernetes namespace (default: default)")
    parser.add_argument("-d", "--deployment", help="Deployment name (required)")
    parser.add_argument("--cpu-threshold", type=float, help="Average CPU above which to scale up (default: 70)")
    parser.add_argument("--memory-threshold", type=float, help="Average memory above which to scale up (default: 80)")
    parser.add_argument("--hysteresis", dest="hysteresis_margin", type=float,
                        help="Distance below the thresholds required to scale down (default: 10)")
    parser.add_argument("--min-replicas", type=int, help="Never scale below this count (default: 1)")
    parser.add_argument("--max-replicas", type=int, help="Never scale above this count (default: 10)")
    parser.add_argument("--interval", help="Time between checks, e.g. 30s or 1m (default: 30s)")
    parser.add_argument("--timeout", dest="call_timeout", help="Timeout of each API call (default: 10s)")
    parser.add_argument("--grace-period", help="Time an in-flight check gets on shutdown (default: 5s)")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Log scaling actions without applying them")
    parser.add_argument("--metrics-mode", choices=METRICS_MODES,
                        help="absolute: millicores and MiB; utilization: percent of requests (default: absolute)")
    parser.add_argument("--config", help="YAML file with configuration values")
    parser.add_argument("--kubeconfig", help="Path to a kubeconfig file (default: in-cluster, then ~/.kube/config)")
    parser.add_argument("--context", help="kubeconfig context to use")
    parser.add_argument("--log-dir", help="Also write text and CSV logs to this directory")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    return parser

async def serve(control: ControlLoop):
    """Runs the loop until SIGINT or SIGTERM."""

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, control.stop)
        except NotImplementedError:
            pass  # Signal handlers are unavailable on this platform.

    await control.run()

def main(argv=None) -> int:
    """Returns 0 after a graceful shutdown and 1 when the configuration is unusable."""

    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if key != "config" and value is not None}

    try:
        config = ScalerConfig.load(args.config, overrides=overrides)
        control = ControlLoop.from_config(config)
    except ConfigError as e:
        ScalerLogger("kubescaler").error_log("Configuration error: %s", e)
        return 1

    asyncio.run(serve(control))
    return 0

import logging

# Custom log levels, registered in `kubescaler.logger`.
SCALER_STDOUT = logging.INFO + 2
SCALER_CSV = logging.INFO + 4
SCALER_FILE = logging.INFO + 8

DEFAULT_FMT = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s"

# Columns of the per-cycle CSV log.
CYCLE_CSV_HEADER = ["namespace", "deployment", "avg_cpu", "avg_memory", "current", "desired", "action", "outcome"]

# Defaults mirrored by `ScalerConfig` and the command line.
DEFAULT_NAMESPACE = "default"
DEFAULT_CPU_THRESHOLD = 70.0
DEFAULT_MEMORY_THRESHOLD = 80.0
DEFAULT_HYSTERESIS_MARGIN = 10.0
DEFAULT_MIN_REPLICAS = 1
DEFAULT_MAX_REPLICAS = 10
DEFAULT_INTERVAL = 30.0
DEFAULT_CALL_TIMEOUT = 10.0
DEFAULT_GRACE_PERIOD = 5.0
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_BACKOFF = 0.1

METRICS_MODE_ABSOLUTE = "absolute"
METRICS_MODE_UTILIZATION = "utilization"
METRICS_MODES = (METRICS_MODE_ABSOLUTE, METRICS_MODE_UTILIZATION)

# Environment variables are read as `KUBESCALER_<FIELD>`.
ENV_PREFIX = "KUBESCALER_"

# metrics.k8s.io resource holding live pod usage.
METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"
METRICS_PLURAL = "pods"

MEBIBYTE = 1024 * 1024

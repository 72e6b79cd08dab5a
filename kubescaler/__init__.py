from . import cluster
from . import logger
from . import metrics
from . import scaling

from .config import ScalerConfig
from .errors import ActuationFailed, ConfigError, ConflictError, FatalError, NotFoundError, ScalerError, TransientError
from .loop import ControlLoop

__version__ = "0.1.0"

__all__ = [
    "cluster",
    "logger",
    "metrics",
    "scaling",
    "ScalerConfig",
    "ControlLoop",
    "ScalerError",
    "ConfigError",
    "NotFoundError",
    "TransientError",
    "ConflictError",
    "FatalError",
    "ActuationFailed",
]

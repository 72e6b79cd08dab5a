"""Builds the immutable configuration handed to the control loop."""

import math
import os

from dataclasses import dataclass, fields, replace
from dotenv import load_dotenv
from kubescaler.constants import *
from kubescaler.errors import ConfigError
from kubescaler.models import WorkloadRef
from kubescaler.utils.time import parse_duration
from pathlib import Path
from typing import Any, Dict, Optional

import logging
import yaml

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_FINITE_FIELDS = ("cpu_threshold", "memory_threshold", "hysteresis_margin", "interval", "call_timeout", "grace_period",
                  "retry_backoff")

@dataclass(frozen=True)
class ScalerConfig:
    """Everything one control loop needs, built once at startup."""

    deployment: str = ""
    namespace: str = DEFAULT_NAMESPACE
    cpu_threshold: float = DEFAULT_CPU_THRESHOLD
    memory_threshold: float = DEFAULT_MEMORY_THRESHOLD
    hysteresis_margin: float = DEFAULT_HYSTERESIS_MARGIN
    min_replicas: int = DEFAULT_MIN_REPLICAS
    max_replicas: int = DEFAULT_MAX_REPLICAS
    interval: float = DEFAULT_INTERVAL
    dry_run: bool = False
    call_timeout: float = DEFAULT_CALL_TIMEOUT
    grace_period: float = DEFAULT_GRACE_PERIOD
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_backoff: float = DEFAULT_RETRY_BACKOFF
    metrics_mode: str = METRICS_MODE_ABSOLUTE
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    log_dir: Optional[str] = None
    log_level: str = "INFO"

    @property
    def workload(self) -> WorkloadRef:
        return WorkloadRef(self.namespace, self.deployment)

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    def validate(self) -> "ScalerConfig":
        """Raises ConfigError on the first problem found, otherwise returns self."""

        if not self.deployment:
            raise ConfigError("a deployment name is required (--deployment)")
        if not self.namespace:
            raise ConfigError("namespace must not be empty")
        for name in _FINITE_FIELDS:
            if not math.isfinite(getattr(self, name)):
                raise ConfigError(f"{name.replace('_', ' ')} must be a finite number, got {getattr(self, name)}")
        if self.interval <= 0:
            raise ConfigError(f"interval must be positive, got {self.interval:g}s")
        if self.call_timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.call_timeout:g}s")
        if self.grace_period < 0:
            raise ConfigError(f"grace period must not be negative, got {self.grace_period:g}s")
        if self.hysteresis_margin < 0:
            raise ConfigError(f"hysteresis margin must not be negative, got {self.hysteresis_margin:g}")
        if self.cpu_threshold < 0 or self.memory_threshold < 0:
            raise ConfigError("thresholds must not be negative")
        if self.min_replicas < 1:
            raise ConfigError(f"min replicas must be at least 1, got {self.min_replicas}")
        if self.max_replicas < self.min_replicas:
            raise ConfigError(f"max replicas ({self.max_replicas}) is below min replicas ({self.min_replicas})")
        if self.max_attempts < 1:
            raise ConfigError(f"max attempts must be at least 1, got {self.max_attempts}")
        if self.retry_backoff < 0:
            raise ConfigError(f"retry backoff must not be negative, got {self.retry_backoff:g}s")
        if self.metrics_mode not in METRICS_MODES:
            raise ConfigError(f"unknown metrics mode {self.metrics_mode!r}, expected one of {', '.join(METRICS_MODES)}")
        if not isinstance(self.log_level_value, int):
            raise ConfigError(f"unknown log level {self.log_level!r}")
        return self

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], base: Optional["ScalerConfig"] = None) -> "ScalerConfig":
        """Returns `base` (or the defaults) with the values in `data` applied, coerced to field types."""

        known = {f.name: f for f in fields(cls)}
        changes = {}

        for key, value in data.items():
            name = key.replace("-", "_")
            if name not in known:
                raise ConfigError(f"unknown configuration key {key!r}")
            if value is None:
                continue
            changes[name] = _coerce(name, known[name].type, value)

        return replace(base or cls(), **changes)

    @classmethod
    def load(cls, config_file=None, environ=None, overrides=None) -> "ScalerConfig":
        """
        Layers the sources from lowest to highest precedence: defaults, YAML file,
        KUBESCALER_* environment variables (a local .env file included), explicit overrides.
        The result is validated.
        """

        config = cls()

        if config_file:
            config = cls.from_mapping(read_config_yaml(config_file), config)

        if environ is None:
            load_dotenv(".env")
            environ = os.environ
        config = cls.from_mapping(_from_environ(environ), config)

        if overrides:
            config = cls.from_mapping(overrides, config)

        return config.validate()

def read_config_yaml(filepath) -> Dict[str, Any]:
    """Reads a YAML mapping of configuration keys."""

    path = Path(filepath)
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data

def _from_environ(environ) -> Dict[str, Any]:
    values = {}
    for f in fields(ScalerConfig):
        value = environ.get(ENV_PREFIX + f.name.upper())
        if value is not None:
            values[f.name] = value
    return values

def _coerce(name, kind, value):
    try:
        if name in ("interval", "call_timeout", "grace_period", "retry_backoff"):
            return parse_duration(value)
        if kind in (bool, "bool"):
            return _to_bool(value)
        if kind in (int, "int"):
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"expected an integer, got {value}")
            return int(value)
        if kind in (float, "float"):
            return float(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid value for {name}: {value!r} ({e})") from e

def _to_bool(value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError("expected a boolean")

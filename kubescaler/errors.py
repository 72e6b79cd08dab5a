"""Exception hierarchy shared by the collaborators and the control loop."""


class ScalerError(Exception):
    """Base class for every error raised by kubescaler."""


class ConfigError(ScalerError):
    """Missing or invalid configuration. Only raised before the loop starts."""


class NotFoundError(ScalerError):
    """The workload or its live instances are absent."""


class TransientError(ScalerError):
    """A remote call failed in a way that may succeed next cycle."""


class ConflictError(ScalerError):
    """A write was rejected because the concurrency token was stale."""


class FatalError(ScalerError):
    """The cluster rejected a request as invalid; retrying it will not help."""


class ActuationFailed(ScalerError):
    """Conflict retries were exhausted without the write going through."""

    def __init__(self, message, attempts=0):
        super().__init__(message)
        self.attempts = attempts

from .collector import MetricsCollector, average_usage

__all__ = ["MetricsCollector", "average_usage"]

from .quantity import parse_cpu_millicores, parse_memory_bytes, parse_quantity
from .time import call_with_timeout, parse_duration

__all__ = ["parse_cpu_millicores", "parse_memory_bytes", "parse_quantity", "call_with_timeout", "parse_duration"]

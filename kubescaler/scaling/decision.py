from kubescaler.models import ScalingAction, ScalingDecision, UsageStats

def decide(stats: UsageStats,
           cpu_threshold: float,
           memory_threshold: float,
           hysteresis_margin: float,
           current_replicas: int,
           min_replicas: int = 1) -> ScalingDecision:
    """
    Maps workload averages to a one-step scaling decision.

    Scale-up wins whenever either average is above its threshold. Scale-down needs both
    averages below their threshold minus the hysteresis margin and room above the floor.
    No ceiling is applied here; callers bound scale-ups themselves.
    """

    # A workload below the floor (e.g. scaled by hand) is brought back to it.
    if current_replicas < min_replicas:
        return ScalingDecision(ScalingAction.SCALE_UP, current_replicas, min_replicas,
                               f"below minimum of {min_replicas} replicas")

    if stats.avg_cpu > cpu_threshold or stats.avg_memory > memory_threshold:
        return ScalingDecision(ScalingAction.SCALE_UP, current_replicas, current_replicas + 1,
                               _reason(stats, cpu_threshold, memory_threshold, ">"))

    cpu_floor, memory_floor = cpu_threshold - hysteresis_margin, memory_threshold - hysteresis_margin
    underused = stats.avg_cpu < cpu_floor and stats.avg_memory < memory_floor

    if underused and current_replicas > min_replicas:
        return ScalingDecision(ScalingAction.SCALE_DOWN, current_replicas, current_replicas - 1,
                               _reason(stats, cpu_floor, memory_floor, "<"))

    return ScalingDecision(ScalingAction.NO_ACTION, current_replicas, current_replicas,
                           f"already at minimum of {min_replicas} replicas" if underused else "within target band")

def _reason(stats, cpu_bound, memory_bound, op):
    return f"cpu {stats.avg_cpu:.2f} {op} {cpu_bound:g} / memory {stats.avg_memory:.2f} {op} {memory_bound:g}"

class DecisionEngine:
    """Holds the thresholds of one workload and applies `decide` to each sample."""

    def __init__(self, cpu_threshold: float, memory_threshold: float, hysteresis_margin: float, min_replicas: int = 1):
        self.cpu_threshold = cpu_threshold
        self.memory_threshold = memory_threshold
        self.hysteresis_margin = hysteresis_margin
        self.min_replicas = min_replicas

    @classmethod
    def from_config(cls, config):
        return cls(config.cpu_threshold, config.memory_threshold, config.hysteresis_margin, config.min_replicas)

    def decide(self, stats: UsageStats, current_replicas: int) -> ScalingDecision:
        return decide(stats, self.cpu_threshold, self.memory_threshold, self.hysteresis_margin,
                      current_replicas, self.min_replicas)

import pytest

from kubescaler.config import ScalerConfig
from kubescaler.models import ScalingAction, UsageStats
from kubescaler.scaling import DecisionEngine, decide

def stats(cpu, memory):
    return UsageStats(cpu, memory, 3)

class TestScenarios:

    def test_cpu_above_threshold_scales_up(self):
        decision = decide(stats(85, 40), 70, 80, 10, current_replicas=2)
        assert decision.action == ScalingAction.SCALE_UP
        assert decision.desired == 3

    def test_both_below_band_scales_down(self):
        decision = decide(stats(50, 30), 70, 80, 10, current_replicas=3)
        assert decision.action == ScalingAction.SCALE_DOWN
        assert decision.desired == 2

    def test_floor_already_reached(self):
        decision = decide(stats(10, 10), 70, 80, 10, current_replicas=1, min_replicas=1)
        assert decision.action == ScalingAction.NO_ACTION
        assert decision.desired == 1

class TestScaleUp:

    @pytest.mark.parametrize("cpu, memory", [(71, 0), (71, 95), (0, 81), (200, 200)])
    def test_either_metric_over_threshold(self, cpu, memory):
        decision = decide(stats(cpu, memory), 70, 80, 10, current_replicas=4, min_replicas=2)
        assert decision.action == ScalingAction.SCALE_UP
        assert decision.desired == 5

    def test_equal_to_threshold_is_not_over(self):
        decision = decide(stats(70, 80), 70, 80, 10, current_replicas=4)
        assert decision.action == ScalingAction.NO_ACTION

    def test_takes_precedence_over_scale_down(self):
        # A negative margin puts the down-threshold above the up-threshold.
        decision = decide(stats(50, 10), 40, 80, -20, current_replicas=3)
        assert decision.action == ScalingAction.SCALE_UP
        assert decision.desired == 4

    def test_memory_pressure_blocks_scale_down(self):
        decision = decide(stats(5, 90), 70, 80, 10, current_replicas=3)
        assert decision.action == ScalingAction.SCALE_UP

class TestScaleDown:

    @pytest.mark.parametrize("cpu, memory", [(59.9, 69.9), (0, 0), (30, 10)])
    def test_both_metrics_under_band(self, cpu, memory):
        decision = decide(stats(cpu, memory), 70, 80, 10, current_replicas=5, min_replicas=2)
        assert decision.action == ScalingAction.SCALE_DOWN
        assert decision.desired == 4

    @pytest.mark.parametrize("cpu, memory", [(60, 10), (10, 70), (65, 75)])
    def test_dead_zone_holds(self, cpu, memory):
        decision = decide(stats(cpu, memory), 70, 80, 10, current_replicas=5)
        assert decision.action == ScalingAction.NO_ACTION
        assert decision.desired == 5
        assert decision.reason == "within target band"

    def test_respects_custom_minimum(self):
        decision = decide(stats(1, 1), 70, 80, 10, current_replicas=3, min_replicas=3)
        assert decision.action == ScalingAction.NO_ACTION
        assert "minimum" in decision.reason

    @pytest.mark.parametrize("current", [1, 2, 3, 7])
    @pytest.mark.parametrize("min_replicas", [1, 2, 3])
    @pytest.mark.parametrize("cpu, memory", [(0, 0), (65, 75), (90, 10)])
    def test_never_below_minimum(self, current, min_replicas, cpu, memory):
        decision = decide(stats(cpu, memory), 70, 80, 10, current_replicas=current, min_replicas=min_replicas)
        assert decision.desired >= min_replicas
        assert abs(decision.desired - current) <= 1 or current < min_replicas

def test_below_floor_is_restored():
    decision = decide(stats(0, 0), 70, 80, 10, current_replicas=0, min_replicas=2)
    assert decision.action == ScalingAction.SCALE_UP
    assert decision.desired == 2

def test_engine_uses_config_thresholds():
    config = ScalerConfig(deployment="web", cpu_threshold=200, memory_threshold=512, hysteresis_margin=50, min_replicas=2)
    engine = DecisionEngine.from_config(config)

    assert engine.decide(stats(250, 100), 4).desired == 5
    assert engine.decide(stats(100, 100), 4).desired == 3
    assert engine.decide(stats(100, 100), 2).action == ScalingAction.NO_ACTION

from .actuator import ScaleActuator
from .decision import DecisionEngine, decide

__all__ = ["ScaleActuator", "DecisionEngine", "decide"]

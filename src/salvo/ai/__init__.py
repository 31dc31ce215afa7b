"""AI package exports."""

from .difficulty import AIOption, policy_for
from .instrumented_engine import InstrumentedTargetingEngine
from .policies import TargetingPolicy
from .target_queue import Probe, TargetQueue
from .targeting import EngineState, TargetingEngine

__all__ = [
    "AIOption",
    "EngineState",
    "InstrumentedTargetingEngine",
    "Probe",
    "TargetQueue",
    "TargetingEngine",
    "TargetingPolicy",
    "policy_for",
]

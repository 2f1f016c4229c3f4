from .behaviors import Context, ElementBehavior
from .config import ConfigView, ElementConfig, ElementConfigStore
from .engine import SimulationEvent, Simulator
from .scope import Scope, ScopeArena, ScopeState
from .session import SimulationSession

__all__ = [
    "Context",
    "ElementBehavior",
    "ConfigView",
    "ElementConfig",
    "ElementConfigStore",
    "SimulationEvent",
    "Simulator",
    "Scope",
    "ScopeArena",
    "ScopeState",
    "SimulationSession",
]

"""Process graph compiler and token simulation for SESE process diagrams."""

from .client import SteppingClient
from .compiler import CompiledProcess, SequenceCompiler, compile_process
from .errors import (
    AmbiguousJoinError,
    ConfigLockedError,
    FlowTokenError,
    GraphError,
    JoinNotFoundError,
    StructuralError,
    SteppingServiceError,
    TraceFormatError,
    TriggerFailure,
    UnknownElementError,
)
from .graph import Flow, GraphNode, ProcessGraph, reachable_from
from .ids import IdMapper
from .joins import find_join
from .log import configure_logging
from .payload import StepPayload, build_payload
from .region import ChoiceRegion, ParallelRegion, RegionNode, SequentialRegion, TaskRegion, fold
from .replay import ReplayDriver
from .sese import ValidationResult, ensure_sese, validate_sese
from .settings import Settings
from .simulator import ElementConfig, ElementConfigStore, SimulationSession, Simulator
from .trace import Snapshot, TargetTrace
from .types import ElementKind, ElementStatus

__version__ = "0.1.0"

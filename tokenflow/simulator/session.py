from ..graph import ProcessGraph
from .config import ElementConfigStore
from .engine import Simulator


class SimulationSession:
    """Owns one simulation: the graph, the writable config store and the engine.

    The engine only receives a read-only view of the store, so whoever holds
    the session (the replay driver, or an interactive caller) is the single
    writer.
    """

    def __init__(self, graph: ProcessGraph):
        self.graph = graph
        self.config = ElementConfigStore()
        self.simulator = Simulator(graph, self.config.view())

    def reset(self) -> None:
        self.config.reset()
        self.simulator.reset()

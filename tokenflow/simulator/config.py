"""Per-element runtime configuration shared by the replay driver and the engine.

The store is the only writable handle; the engine is given a ``ConfigView``
that can read but not change anything.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Optional

from loguru import logger

from ..errors import ConfigLockedError
from ..graph import Flow, GraphNode


@dataclass(frozen=True)
class ElementConfig:
    wait: bool = False
    locked: bool = False
    active_outgoing: Optional[Flow] = None


DEFAULT_CONFIG = ElementConfig()


class ConfigView:
    """Read-only window on an ``ElementConfigStore``."""

    def __init__(self, store: "ElementConfigStore"):
        self._store = store

    def get(self, element: GraphNode) -> ElementConfig:
        return self._store.get(element)


class ElementConfigStore:
    def __init__(self):
        self._configs: Dict[str, ElementConfig] = {}

    def get(self, element: GraphNode) -> ElementConfig:
        return self._configs.get(element.id, DEFAULT_CONFIG)

    def set(self, element: GraphNode, **changes) -> ElementConfig:
        config = replace(self.get(element), **changes)
        self._configs[element.id] = config
        return config

    def lock(self, gateway: GraphNode, flow: Flow) -> ElementConfig:
        return self.set(gateway, locked=True, active_outgoing=flow, wait=True)

    def unlock(self, gateway: GraphNode) -> ElementConfig:
        return self.set(gateway, locked=False, active_outgoing=None, wait=False)

    def set_sequence_flow(self, gateway: GraphNode, flow: Flow) -> ElementConfig:
        """Pick a gateway's branch by hand; refused while the gateway is locked."""
        if self.get(gateway).locked:
            raise ConfigLockedError(f"Sequence flow of '{gateway.id}' is locked (automatic)")
        if flow.source.id != gateway.id:
            raise ValueError(f"Flow '{flow.id}' does not leave '{gateway.id}'")
        logger.debug(f"[config] {gateway.id} -> {flow.id}")
        return self.set(gateway, active_outgoing=flow)

    def reset(self) -> None:
        self._configs.clear()

    def view(self) -> ConfigView:
        return ConfigView(self)

    def __len__(self) -> int:
        return len(self._configs)

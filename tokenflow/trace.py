"""Target traces: ordered snapshots of expected element status.

A trace on disk is a directory with one JSON file per time step, each a flat
``{element_id: "active" | "completed"}`` mapping. Files are ordered by the
integer at the end of their name (``state_2.json`` before ``state_10.json``).
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Set, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import TraceFormatError
from .types import ElementStatus

_STEP_INDEX = re.compile(r"(\d+)$")


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    index: int = 0
    states: Dict[str, ElementStatus] = Field(default_factory=dict)

    def status(self, element_id: str) -> ElementStatus:
        return self.states.get(element_id, ElementStatus.absent)

    def is_active(self, element_id: str) -> bool:
        return self.status(element_id) == ElementStatus.active

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], name: str = "", index: int = 0) -> "Snapshot":
        if not isinstance(mapping, Mapping):
            raise TraceFormatError(f"Snapshot '{name}' must be a JSON object, got {type(mapping).__name__}")
        try:
            return cls(name=name, index=index, states=dict(mapping))
        except ValidationError as e:
            raise TraceFormatError(f"Snapshot '{name}' has an invalid status: {e}") from e


class TargetTrace:
    """Immutable, ordered sequence of snapshots."""

    def __init__(self, snapshots: Sequence[Snapshot]):
        self._snapshots: List[Snapshot] = list(snapshots)

    @classmethod
    def from_mappings(cls, mappings: Sequence[Mapping[str, Any]]) -> "TargetTrace":
        return cls([Snapshot.from_mapping(m, name=f"t{i}", index=i) for i, m in enumerate(mappings)])

    @classmethod
    def load(cls, directory: Union[str, Path]) -> "TargetTrace":
        base = Path(directory)
        if not base.is_dir():
            raise TraceFormatError(f"Trace directory not found: {base}")

        indexed = []
        for path in base.glob("*.json"):
            indexed.append((step_index(path), path))
        indexed.sort(key=lambda item: item[0])

        seen = set()
        snapshots = []
        for index, path in indexed:
            if index in seen:
                raise TraceFormatError(f"Duplicate step index {index} in {base}")
            seen.add(index)
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise TraceFormatError(f"Invalid JSON in {path.name}: {e}") from e
            snapshots.append(Snapshot.from_mapping(data, name=path.stem, index=index))

        logger.info(f"[trace] Loaded {len(snapshots)} snapshots from {base}")
        return cls(snapshots)

    def element_ids(self) -> Set[str]:
        ids: Set[str] = set()
        for snap in self._snapshots:
            ids.update(snap.states)
        return ids

    def __len__(self) -> int:
        return len(self._snapshots)

    def __getitem__(self, index: int) -> Snapshot:
        return self._snapshots[index]

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(self._snapshots)


def step_index(path: Union[str, Path]) -> int:
    """Numeric step index embedded at the end of a trace file name."""
    stem = Path(path).stem
    match = _STEP_INDEX.search(stem)
    if match is None:
        raise TraceFormatError(f"Trace file '{Path(path).name}' has no trailing step index")
    return int(match.group(1))

"""Region tree: the binary execution tree handed to the stepping service.

Node shapes match the service's JSON contract (``id``, ``type``, ``label``,
``duration``, ``impacts``, ``max_delay``, ``children``). Every node is
validated on construction and immutable afterwards.
"""

from itertools import count
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class TaskRegion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: Literal["task"] = "task"
    label: str
    duration: float = 1
    impacts: List[float] = Field(default_factory=lambda: [1.0], min_length=1)


class SequentialRegion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: Literal["sequential"] = "sequential"
    children: List["RegionNode"] = Field(min_length=2, max_length=2)


class ChoiceRegion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: Literal["choice"] = "choice"
    label: str
    children: List["RegionNode"] = Field(min_length=1)
    max_delay: float = 0


class ParallelRegion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: Literal["parallel"] = "parallel"
    label: str
    children: List["RegionNode"] = Field(min_length=1)


RegionNode = Annotated[
    Union[TaskRegion, SequentialRegion, ChoiceRegion, ParallelRegion],
    Field(discriminator="type"),
]

SequentialRegion.model_rebuild()
ChoiceRegion.model_rebuild()
ParallelRegion.model_rebuild()

RegionAdapter: TypeAdapter = TypeAdapter(RegionNode)

NOOP_LABEL = "NoOp"


def fold(items: Sequence[RegionNode], ids: Optional[Iterator[int]] = None) -> RegionNode:
    """Fold an ordered list of regions into a right-leaning sequence tree.

    ``[]`` gives a zero-cost NoOp task, ``[x]`` gives ``x`` and
    ``[a, b, c]`` gives ``Sequential(a, Sequential(b, c))``. Synthetic nodes
    draw their ids from ``ids`` (outermost first).
    """
    ids = ids if ids is not None else count(1)
    if not items:
        return TaskRegion(id=next(ids), label=NOOP_LABEL, duration=0, impacts=[0])
    if len(items) == 1:
        return items[0]

    seq_ids = [next(ids) for _ in range(len(items) - 1)]
    node = items[-1]
    for item, seq_id in zip(reversed(items[:-1]), reversed(seq_ids)):
        node = SequentialRegion(id=seq_id, children=[item, node])
    return node


def iter_regions(node: RegionNode) -> Iterator[RegionNode]:
    """Depth-first, pre-order walk over a region tree."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(getattr(current, "children", [])))


def region_to_dict(node: RegionNode) -> Dict[str, Any]:
    return node.model_dump(mode="json")


def region_from_dict(data: Dict[str, Any]) -> RegionNode:
    return RegionAdapter.validate_python(data)

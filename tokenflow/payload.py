"""Pydantic schema for the stepping service request payload.

The payload is the service's exact input contract: the compiled region tree
plus whatever execution state the previous response returned.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .region import RegionNode, region_to_dict


class StepPayload(BaseModel):
    graph: Dict[str, Any] = Field(description="Compiled region tree as JSON")
    derived_state: Optional[Any] = None
    execution_trace: Optional[Any] = None
    decisions: Optional[Any] = Field(default=None, description="Must stay null while derived_state is null")
    preview: bool = False

    @model_validator(mode="after")
    def check_decisions(self) -> "StepPayload":
        if self.derived_state is None and self.decisions is not None:
            raise ValueError("decisions must be null when derived_state is null")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def build_payload(tree: Union[RegionNode, Dict[str, Any]], prior_state: Optional[Dict[str, Any]] = None) -> StepPayload:
    """Shape a stepping request from a region tree and the previous response.

    Only ``execution_trace`` and ``derived_state`` are carried over from
    ``prior_state``; ``decisions`` is always left null.
    """
    graph = tree if isinstance(tree, dict) else region_to_dict(tree)
    payload = StepPayload(graph=graph)
    if prior_state:
        if prior_state.get("execution_trace"):
            payload.execution_trace = prior_state["execution_trace"]
        if prior_state.get("derived_state"):
            payload.derived_state = prior_state["derived_state"]
    return payload

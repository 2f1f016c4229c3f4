from __future__ import annotations
from typing import List

from loguru import logger
from pydantic import BaseModel, Field

from .errors import StructuralError
from .graph import ProcessGraph
from .types import ElementKind


class ValidationResult(BaseModel):
    """Outcome of a SESE check: one message per violating scope."""
    valid: bool
    errors: List[str] = Field(default_factory=list)
    scopes: List[str] = Field(default_factory=list, description="Ids of violating scopes")


def validate_sese(graph: ProcessGraph) -> ValidationResult:
    """Check that every process scope has exactly one start and one end event.

    Scopes are the root process (or each pool of a collaboration) and every
    subprocess. All violations are collected before returning.
    """
    errors: List[str] = []
    scopes: List[str] = []

    for scope in graph.process_scopes():
        children = graph.children(scope)
        starts = sum(1 for c in children if c.kind == ElementKind.StartEvent)
        ends = sum(1 for c in children if c.kind == ElementKind.EndEvent)

        problems = []
        if starts != 1:
            problems.append(f"{starts} Start Events")
        if ends != 1:
            problems.append(f"{ends} End Events")
        if problems:
            errors.append(f"Scope '{scope.name}' has {' and '.join(problems)} (must be 1).")
            scopes.append(scope.id)

    for msg in errors:
        logger.debug(f"[sese] {msg}")
    return ValidationResult(valid=not errors, errors=errors, scopes=scopes)


def ensure_sese(graph: ProcessGraph) -> None:
    result = validate_sese(graph)
    if not result.valid:
        raise StructuralError(result.errors)

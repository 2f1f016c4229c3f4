from typing import List, Optional, Set

from loguru import logger

from .errors import AmbiguousJoinError
from .graph import GraphNode, ProcessGraph, reachable_from


def find_join(graph: ProcessGraph, split: GraphNode) -> Optional[GraphNode]:
    """Find the gateway where every branch of ``split`` converges.

    Intersects the reachable sets of all branch targets and keeps the
    gateways. Downstream constructs also show up in the intersection, so only
    the candidates that reach every other candidate are kept: in a structured
    diagram that leaves exactly the nearest convergence point. Returns None
    when the branches never reconverge on a gateway.
    """
    branches = [flow.target for flow in graph.outgoing(split)]
    if not branches:
        return None

    common: Set[GraphNode] = reachable_from(graph, branches[0])
    for target in branches[1:]:
        common &= reachable_from(graph, target)

    # keep diagram order so results are deterministic
    candidates: List[GraphNode] = [n for n in graph.nodes if n in common and n.kind.is_gateway]
    if not candidates:
        logger.debug(f"[join] No convergence gateway for {split.id}")
        return None

    nearest = []
    for candidate in candidates:
        downstream = reachable_from(graph, candidate)
        if all(other in downstream for other in candidates):
            nearest.append(candidate)
    if len(nearest) == 1:
        logger.debug(f"[join] {split.id} closes at {nearest[0].id}")
        return nearest[0]
    raise AmbiguousJoinError(split.id, [c.id for c in (nearest or candidates)])

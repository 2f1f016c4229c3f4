from typing import List, Optional, Sequence


class FlowTokenError(Exception):
    pass

class GraphError(FlowTokenError):
    """Raised when the process graph adapter is used inconsistently."""
    pass

class StructuralError(FlowTokenError):
    """Raised when the diagram is not a well-structured SESE process graph."""

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))

class JoinNotFoundError(StructuralError):
    def __init__(self, split_id: str):
        self.split_id = split_id
        super().__init__([f"Closing join not found for '{split_id}'"])

class AmbiguousJoinError(StructuralError):
    def __init__(self, split_id: str, candidates: Sequence[str]):
        self.split_id = split_id
        self.candidates = list(candidates)
        super().__init__([
            f"Ambiguous join for '{split_id}': candidates {self.candidates}"
        ])

class UnknownElementError(FlowTokenError):
    """Raised when a target trace references ids missing from the diagram."""

    def __init__(self, element_ids: Sequence[str]):
        self.element_ids = sorted(element_ids)
        super().__init__(f"Unknown element ids in trace: {self.element_ids}")

class TriggerFailure(FlowTokenError):
    def __init__(self, element_id: str, reason: str):
        self.element_id = element_id
        super().__init__(f"Cannot trigger '{element_id}': {reason}")

class TraceFormatError(FlowTokenError):
    pass

class ConfigLockedError(FlowTokenError):
    """Raised when a locked gateway is configured by hand."""
    pass

class SteppingServiceError(FlowTokenError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

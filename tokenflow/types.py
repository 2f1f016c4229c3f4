from enum import Enum


class ElementKind(str, Enum):
    Task = "Task"
    ExclusiveGateway = "ExclusiveGateway"
    ParallelGateway = "ParallelGateway"
    StartEvent = "StartEvent"
    EndEvent = "EndEvent"
    SubProcess = "SubProcess"
    IntermediateCatchEvent = "IntermediateCatchEvent"
    Process = "Process"
    Participant = "Participant"
    Collaboration = "Collaboration"
    Unknown = "Unknown"

    @classmethod
    def from_bpmn_type(cls, bpmn_type: str) -> "ElementKind":
        """Map a BPMN type name such as ``bpmn:UserTask`` to its element kind."""
        return _BPMN_KINDS.get(bpmn_type, cls.Unknown)

    @property
    def is_gateway(self) -> bool:
        return self in (ElementKind.ExclusiveGateway, ElementKind.ParallelGateway)

    @property
    def is_activity(self) -> bool:
        return self in (ElementKind.Task, ElementKind.SubProcess)


_TASK_TYPES = (
    "Task", "UserTask", "ServiceTask", "ManualTask", "SendTask",
    "ReceiveTask", "ScriptTask", "BusinessRuleTask", "CallActivity",
)

_BPMN_KINDS = {f"bpmn:{name}": ElementKind.Task for name in _TASK_TYPES}
_BPMN_KINDS.update({
    "bpmn:ExclusiveGateway": ElementKind.ExclusiveGateway,
    "bpmn:ParallelGateway": ElementKind.ParallelGateway,
    "bpmn:StartEvent": ElementKind.StartEvent,
    "bpmn:EndEvent": ElementKind.EndEvent,
    "bpmn:SubProcess": ElementKind.SubProcess,
    "bpmn:IntermediateCatchEvent": ElementKind.IntermediateCatchEvent,
    "bpmn:Process": ElementKind.Process,
    "bpmn:Participant": ElementKind.Participant,
    "bpmn:Collaboration": ElementKind.Collaboration,
})


class ElementStatus(str, Enum):
    """Status of one element inside a trace snapshot."""
    absent = "absent"
    active = "active"
    completed = "completed"

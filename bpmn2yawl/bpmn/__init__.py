# BPMN module
# Exports the in-memory BPMN model and its RDF loader

from .elements import (
    ANDGateway,
    Activity,
    AssignTime,
    Assignment,
    Association,
    BPMNDiagram,
    ConditionType,
    DataObject,
    EndErrorEvent,
    EndPlainEvent,
    EndTerminateEvent,
    Gateway,
    IntermediateErrorEvent,
    IntermediateEvent,
    IntermediateMessageEvent,
    IntermediatePlainEvent,
    IntermediateTimerEvent,
    Lane,
    LoopType,
    MIFlowCondition,
    Node,
    NodeKind,
    ORGateway,
    Process,
    Property,
    SequenceFlow,
    StartPlainEvent,
    SubProcess,
    Task,
    XORDataBasedGateway,
    XOREventBasedGateway,
    associate,
    attach,
    connect,
)
from .rdf_loader import RDFDiagramLoader, load_diagram

__all__ = [
    'ANDGateway',
    'Activity',
    'AssignTime',
    'Assignment',
    'Association',
    'BPMNDiagram',
    'ConditionType',
    'DataObject',
    'EndErrorEvent',
    'EndPlainEvent',
    'EndTerminateEvent',
    'Gateway',
    'IntermediateErrorEvent',
    'IntermediateEvent',
    'IntermediateMessageEvent',
    'IntermediatePlainEvent',
    'IntermediateTimerEvent',
    'Lane',
    'LoopType',
    'MIFlowCondition',
    'Node',
    'NodeKind',
    'ORGateway',
    'Process',
    'Property',
    'SequenceFlow',
    'StartPlainEvent',
    'SubProcess',
    'Task',
    'XORDataBasedGateway',
    'XOREventBasedGateway',
    'associate',
    'attach',
    'connect',
    'RDFDiagramLoader',
    'load_diagram'
]

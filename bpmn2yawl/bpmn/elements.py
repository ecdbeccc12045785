# BPMN Source Graph
# In-memory BPMN model consumed (read-only) by the translator

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Union


class NodeKind(Enum):
    """Closed set of BPMN node kinds the translator dispatches on."""

    TASK = "task"
    SUBPROCESS = "subProcess"
    START_PLAIN_EVENT = "startPlainEvent"
    END_PLAIN_EVENT = "endPlainEvent"
    END_ERROR_EVENT = "endErrorEvent"
    END_TERMINATE_EVENT = "endTerminateEvent"
    INTERMEDIATE_PLAIN_EVENT = "intermediatePlainEvent"
    INTERMEDIATE_TIMER_EVENT = "intermediateTimerEvent"
    INTERMEDIATE_MESSAGE_EVENT = "intermediateMessageEvent"
    INTERMEDIATE_ERROR_EVENT = "intermediateErrorEvent"
    AND_GATEWAY = "andGateway"
    OR_GATEWAY = "orGateway"
    XOR_DATA_GATEWAY = "xorDataBasedGateway"
    XOR_EVENT_GATEWAY = "xorEventBasedGateway"
    DATA_OBJECT = "dataObject"


# Gateways that only route control flow (no events involved)
CONTROL_GATEWAY_KINDS = frozenset(
    {NodeKind.AND_GATEWAY, NodeKind.OR_GATEWAY, NodeKind.XOR_DATA_GATEWAY}
)


class ConditionType(Enum):
    NONE = "none"
    EXPRESSION = "expression"
    DEFAULT = "default"


class LoopType(Enum):
    NONE = "none"
    STANDARD = "standard"


class MIFlowCondition(Enum):
    NONE = "none"
    ONE = "one"
    ALL = "all"
    COMPLEX = "complex"


class AssignTime(Enum):
    START = "start"
    END = "end"


@dataclass(eq=False)
class Edge:
    """Directed connection between two BPMN nodes."""

    source: "Node"
    target: "Node"
    id: str = ""


@dataclass(eq=False)
class SequenceFlow(Edge):
    condition_type: ConditionType = ConditionType.NONE
    condition_expression: str = ""


@dataclass(eq=False)
class Association(Edge):
    """Data association between a data object and an activity."""


@dataclass
class Property:
    name: str
    type: str = "string"
    value: str = ""


@dataclass
class Assignment:
    to: str
    from_: str = ""
    assign_time: AssignTime = AssignTime.START


@dataclass(eq=False)
class Node:
    """Base class of every BPMN node.

    Nodes compare by identity so they can key the node maps built during
    translation. ``parent`` is the structural parent (process, subprocess
    or lane); membership in a container is given by its ``child_nodes``.
    """

    kind: ClassVar[NodeKind]

    id: str
    label: str = ""
    parent: Optional["Parent"] = field(default=None, repr=False)
    incoming: List[Edge] = field(default_factory=list, repr=False)
    outgoing: List[Edge] = field(default_factory=list, repr=False)

    @property
    def incoming_sequence_flows(self) -> List[SequenceFlow]:
        return [e for e in self.incoming if isinstance(e, SequenceFlow)]

    @property
    def outgoing_sequence_flows(self) -> List[SequenceFlow]:
        return [e for e in self.outgoing if isinstance(e, SequenceFlow)]

    @property
    def predecessor(self) -> Optional["Node"]:
        """Source of the first incoming sequence flow, if any."""
        flows = self.incoming_sequence_flows
        return flows[0].source if flows else None

    @property
    def successor(self) -> Optional["Node"]:
        """Target of the first outgoing sequence flow, if any."""
        flows = self.outgoing_sequence_flows
        return flows[0].target if flows else None


# ==================== Activities ====================


@dataclass(eq=False)
class Activity(Node):
    properties: List[Property] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)
    loop_type: LoopType = LoopType.NONE
    loop_condition: str = ""
    is_multiple_instance: bool = False
    mi_flow_condition: MIFlowCondition = MIFlowCondition.NONE
    attached_events: List["IntermediateEvent"] = field(
        default_factory=list, repr=False
    )


@dataclass(eq=False)
class Task(Activity):
    """Atomic activity. The three initiator attributes feed resourcing."""

    kind: ClassVar[NodeKind] = NodeKind.TASK

    offered_by: Optional[str] = None
    allocated_by: Optional[str] = None
    started_by: Optional[str] = None


@dataclass(eq=False)
class SubProcess(Activity):
    kind: ClassVar[NodeKind] = NodeKind.SUBPROCESS

    child_nodes: List[Node] = field(default_factory=list, repr=False)

    def add(self, *nodes: Node) -> None:
        _adopt(self, nodes)


# ==================== Gateways ====================


@dataclass(eq=False)
class Gateway(Node):
    pass


@dataclass(eq=False)
class ANDGateway(Gateway):
    kind: ClassVar[NodeKind] = NodeKind.AND_GATEWAY


@dataclass(eq=False)
class ORGateway(Gateway):
    kind: ClassVar[NodeKind] = NodeKind.OR_GATEWAY


@dataclass(eq=False)
class XORDataBasedGateway(Gateway):
    kind: ClassVar[NodeKind] = NodeKind.XOR_DATA_GATEWAY


@dataclass(eq=False)
class XOREventBasedGateway(Gateway):
    kind: ClassVar[NodeKind] = NodeKind.XOR_EVENT_GATEWAY


# ==================== Events ====================


@dataclass(eq=False)
class Event(Node):
    pass


@dataclass(eq=False)
class StartPlainEvent(Event):
    kind: ClassVar[NodeKind] = NodeKind.START_PLAIN_EVENT


@dataclass(eq=False)
class EndPlainEvent(Event):
    kind: ClassVar[NodeKind] = NodeKind.END_PLAIN_EVENT


@dataclass(eq=False)
class EndErrorEvent(Event):
    kind: ClassVar[NodeKind] = NodeKind.END_ERROR_EVENT


@dataclass(eq=False)
class EndTerminateEvent(Event):
    kind: ClassVar[NodeKind] = NodeKind.END_TERMINATE_EVENT


@dataclass(eq=False)
class IntermediateEvent(Event):
    # Host activity when the event sits on an activity boundary
    activity: Optional[Activity] = field(default=None, repr=False)

    @property
    def is_attached(self) -> bool:
        return self.activity is not None


@dataclass(eq=False)
class IntermediatePlainEvent(IntermediateEvent):
    kind: ClassVar[NodeKind] = NodeKind.INTERMEDIATE_PLAIN_EVENT


@dataclass(eq=False)
class IntermediateTimerEvent(IntermediateEvent):
    kind: ClassVar[NodeKind] = NodeKind.INTERMEDIATE_TIMER_EVENT

    time_date: str = ""
    time_cycle: str = ""


@dataclass(eq=False)
class IntermediateMessageEvent(IntermediateEvent):
    kind: ClassVar[NodeKind] = NodeKind.INTERMEDIATE_MESSAGE_EVENT


@dataclass(eq=False)
class IntermediateErrorEvent(IntermediateEvent):
    kind: ClassVar[NodeKind] = NodeKind.INTERMEDIATE_ERROR_EVENT


# ==================== Data ====================


@dataclass(eq=False)
class DataObject(Node):
    kind: ClassVar[NodeKind] = NodeKind.DATA_OBJECT

    data_type: str = "string"
    value: str = ""


# ==================== Containers ====================


@dataclass(eq=False)
class Lane:
    id: str
    label: str = ""


@dataclass(eq=False)
class Process:
    """A pool / top-level process holding its nodes (lanes included)."""

    id: str
    label: str = ""
    child_nodes: List[Node] = field(default_factory=list, repr=False)

    def add(self, *nodes: Node) -> None:
        _adopt(self, nodes)


Container = Union[Process, SubProcess]
Parent = Union[Process, SubProcess, Lane]


@dataclass
class BPMNDiagram:
    processes: List[Process] = field(default_factory=list)
    data_objects: List[DataObject] = field(default_factory=list)
    data_type_definition: str = ""


def _adopt(container, nodes) -> None:
    for node in nodes:
        container.child_nodes.append(node)
        if node.parent is None:
            node.parent = container


# ==================== Graph helpers ====================


def connect(
    source: Node,
    target: Node,
    condition_type: ConditionType = ConditionType.NONE,
    condition_expression: str = "",
    flow_id: str = "",
) -> SequenceFlow:
    """Create a sequence flow and register it on both end points."""
    if condition_expression and condition_type == ConditionType.NONE:
        condition_type = ConditionType.EXPRESSION
    flow = SequenceFlow(
        source,
        target,
        flow_id,
        condition_type=condition_type,
        condition_expression=condition_expression,
    )
    source.outgoing.append(flow)
    target.incoming.append(flow)
    return flow


def associate(source: Node, target: Node, association_id: str = "") -> Association:
    """Create a data association (data object -> activity or back)."""
    association = Association(source, target, association_id)
    source.outgoing.append(association)
    target.incoming.append(association)
    return association


def attach(event: IntermediateEvent, activity: Activity) -> IntermediateEvent:
    """Anchor an intermediate event on the boundary of an activity."""
    event.activity = activity
    activity.attached_events.append(event)
    return event

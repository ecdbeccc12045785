# YAWL Net Model
# Target model produced by the translator: a model holds decompositions,
# a net decomposition holds tasks, conditions, edges and variables

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from bpmn2yawl.config import UNBOUNDED
from bpmn2yawl.yawl.resourcing import YResourcing


class SplitJoinType(Enum):
    NONE = "none"
    AND = "and"
    OR = "or"
    XOR = "xor"


class XsiType(Enum):
    NET_FACTS = "NetFactsType"
    WEB_SERVICE_GATEWAY_FACTS = "WebServiceGatewayFactsType"


MULTIPLE_INSTANCE_TASK_XSI_TYPE = "MultipleInstanceExternalTaskFactsType"


class TimerTrigger(Enum):
    ON_ENABLED = "OnEnabled"
    ON_EXECUTING = "OnExecuting"


class CreationMode(Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(eq=False)
class YVariable:
    name: str
    type: str = "string"
    initial_value: str = ""
    read_only: bool = False


@dataclass
class YVariableMapping:
    """A query evaluated when a task starts or completes, bound to a variable."""

    query: str
    variable: YVariable


@dataclass
class YTimer:
    trigger: TimerTrigger = TimerTrigger.ON_ENABLED
    time_cycle: str = ""
    time_date: Optional[datetime] = None
    # Net variable from which the engine reads the timer value
    net_param: str = ""


@dataclass
class YMIDataInput:
    expression: str
    splitting_expression: str
    formal_input_param: YVariable


@dataclass
class YMIDataOutput:
    formal_output_expression: str
    output_joining_expression: str
    result_applied_to_local_variable: YVariable


@dataclass
class YMultiInstanceParam:
    minimum: int = 1
    maximum: int = UNBOUNDED
    threshold: int = UNBOUNDED
    creation_mode: CreationMode = CreationMode.STATIC
    mi_data_input: Optional[YMIDataInput] = None
    mi_data_output: Optional[YMIDataOutput] = None


class YNode:
    """A node (task or condition) of a net decomposition."""

    def __init__(self, node_id: str, name: str, decomposition: "YDecomposition"):
        self.id = node_id
        self.name = name
        self.decomposition = decomposition
        self.incoming_edges: List["YEdge"] = []
        self.outgoing_edges: List["YEdge"] = []

    def __repr__(self):
        return f"{type(self).__name__}({self.id!r})"


class YCondition(YNode):
    pass


class YInputCondition(YCondition):
    pass


class YOutputCondition(YCondition):
    pass


class YTask(YNode):
    def __init__(
        self,
        node_id: str,
        name: str,
        decomposition: "YDecomposition",
        split_type: SplitJoinType = SplitJoinType.NONE,
        join_type: SplitJoinType = SplitJoinType.NONE,
    ):
        super().__init__(node_id, name, decomposition)
        self.split_type = split_type
        self.join_type = join_type
        # Child decomposition (composite task or task-level decomposition)
        self.decomposes_to: Optional["YDecomposition"] = None
        self.timer: Optional[YTimer] = None
        self.mi_param: Optional[YMultiInstanceParam] = None
        self.is_multiple_task = False
        self.xsi_type: Optional[str] = None
        self.resourcing: Optional[YResourcing] = None
        self.cancellation_set: List[YNode] = []
        self.starting_mappings: List[YVariableMapping] = []
        self.completed_mappings: List[YVariableMapping] = []

    def add_to_cancellation_set(self, node: YNode) -> bool:
        """Add a node to the cancellation set.

        Input/output conditions, the task itself and nodes already in the set
        are refused.

        Returns:
            True if the node was added
        """
        if node is None or node is self:
            return False
        if isinstance(node, (YInputCondition, YOutputCondition)):
            return False
        if node in self.cancellation_set:
            return False
        self.cancellation_set.append(node)
        return True


@dataclass(eq=False)
class YEdge:
    source: YNode
    target: YNode
    is_default: bool = False
    predicate: str = ""
    # 0 means unordered
    ordering: int = 0


class YDecomposition:
    """A net (root or subnet) or a task-level decomposition."""

    def __init__(
        self,
        decomposition_id: str,
        model: "YModel",
        xsi_type: XsiType = XsiType.NET_FACTS,
        is_root_net: bool = False,
    ):
        self.id = decomposition_id
        self.model = model
        self.xsi_type = xsi_type
        self.is_root_net = is_root_net
        self.nodes: List[YNode] = []
        self.edges: List[YEdge] = []
        self.local_variables: List[YVariable] = []
        self.input_params: List[YVariable] = []
        self.output_params: List[YVariable] = []
        self.input_condition: Optional[YInputCondition] = None
        self.output_condition: Optional[YOutputCondition] = None

    def __repr__(self):
        return f"YDecomposition({self.id!r})"

    @property
    def tasks(self) -> List[YTask]:
        return [n for n in self.nodes if isinstance(n, YTask)]

    # ==================== Nodes ====================

    def create_task(
        self,
        node_id: str,
        name: str,
        split_type: SplitJoinType = SplitJoinType.NONE,
        join_type: SplitJoinType = SplitJoinType.NONE,
    ) -> YTask:
        task = YTask(node_id, name, self, split_type, join_type)
        self.nodes.append(task)
        return task

    def create_condition(self, node_id: str, name: str) -> YCondition:
        condition = YCondition(node_id, name, self)
        self.nodes.append(condition)
        return condition

    def create_input_condition(self, node_id: str, name: str) -> YInputCondition:
        """Create the input condition; a decomposition has only one."""
        if self.input_condition is None:
            self.input_condition = YInputCondition(node_id, name, self)
            self.nodes.append(self.input_condition)
        return self.input_condition

    def create_output_condition(self, node_id: str, name: str) -> YOutputCondition:
        """Create the output condition; a decomposition has only one."""
        if self.output_condition is None:
            self.output_condition = YOutputCondition(node_id, name, self)
            self.nodes.append(self.output_condition)
        return self.output_condition

    def connect_input_to_output(self) -> YEdge:
        return self.create_edge(self.input_condition, self.output_condition, ordering=1)

    # ==================== Edges ====================

    def create_edge(
        self,
        source: YNode,
        target: YNode,
        is_default: bool = False,
        predicate: str = "",
        ordering: int = 0,
    ) -> YEdge:
        return self.add_edge(YEdge(source, target, is_default, predicate, ordering))

    def add_edge(self, edge: YEdge) -> YEdge:
        self.edges.append(edge)
        edge.source.outgoing_edges.append(edge)
        edge.target.incoming_edges.append(edge)
        return edge

    def remove_edge(self, edge: YEdge) -> None:
        self.edges.remove(edge)
        edge.source.outgoing_edges.remove(edge)
        edge.target.incoming_edges.remove(edge)

    def move_outgoing_edges(self, source: YNode, new_source: YNode) -> None:
        """Re-attach every outgoing edge of ``source`` to ``new_source``."""
        for edge in list(source.outgoing_edges):
            self.remove_edge(edge)
            edge.source = new_source
            self.add_edge(edge)

    def move_incoming_edges(self, target: YNode, new_target: YNode) -> None:
        """Re-attach every incoming edge of ``target`` to ``new_target``."""
        for edge in list(target.incoming_edges):
            self.remove_edge(edge)
            edge.target = new_target
            self.add_edge(edge)

    # ==================== Variables ====================

    def find_variable(self, name: str) -> Optional[YVariable]:
        """Case-insensitive lookup over locals, input and output parameters."""
        wanted = name.lower()
        for variable in self.local_variables + self.input_params + self.output_params:
            if variable.name.lower() == wanted:
                return variable
        return None


class YModel:
    def __init__(self, model_id: str, data_type_definition: str = ""):
        self.id = model_id
        self.data_type_definition = data_type_definition
        self.decompositions: List[YDecomposition] = []

    def create_decomposition(
        self, decomposition_id: str, xsi_type: XsiType = XsiType.NET_FACTS
    ) -> YDecomposition:
        decomposition = YDecomposition(decomposition_id, self, xsi_type)
        self.decompositions.append(decomposition)
        return decomposition

    def get_decomposition(self, decomposition_id: str) -> Optional[YDecomposition]:
        for decomposition in self.decompositions:
            if decomposition.id == decomposition_id:
                return decomposition
        return None

    @property
    def root_net(self) -> Optional[YDecomposition]:
        for decomposition in self.decompositions:
            if decomposition.is_root_net:
                return decomposition
        return None

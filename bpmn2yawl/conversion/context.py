# Translation Context
# State owned by one translation run: id counter, loop registry, inputs

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from bpmn2yawl.bpmn.elements import Activity, BPMNDiagram, EndTerminateEvent, Node
from bpmn2yawl.config import DEFAULT_ID_INFIX, NODE_ID_PREFIX
from bpmn2yawl.yawl.model import YDecomposition, YModel, YNode
from bpmn2yawl.yawl.resourcing import ResourcingType


class TranslationContext:
    """
    Mutable state of a single translation call.

    Holds the identifier counter and the registry of looping activities per
    decomposition. A context must not be shared between concurrent
    translations; a fresh one is created for every call.
    """

    def __init__(
        self,
        diagram: BPMNDiagram,
        model: YModel,
        resourcing_map: Optional[Mapping[str, ResourcingType]] = None,
    ):
        self.diagram = diagram
        self.model = model
        self.resourcing_map: Mapping[str, ResourcingType] = resourcing_map or {}
        self.node_count = 0
        self.depth = 0
        self._looping_activities: Dict[YDecomposition, List[Activity]] = {}

    def generate_id(self, infix: str = DEFAULT_ID_INFIX) -> str:
        """Generate a node id that is unique for this translation run."""
        node_id = f"{NODE_ID_PREFIX}_{infix}_{self.node_count}"
        self.node_count += 1
        return node_id

    def register_looping(self, decomposition: YDecomposition, activity: Activity) -> None:
        activities = self._looping_activities.setdefault(decomposition, [])
        if activity not in activities:
            activities.append(activity)

    def pop_looping_activities(self, decomposition: YDecomposition) -> List[Activity]:
        """Remove and return the looping activities registered for a decomposition."""
        return self._looping_activities.pop(decomposition, [])


@dataclass
class DecompositionScope:
    """Per-decomposition build state: the BPMN -> YAWL node map and work lists."""

    decomposition: YDecomposition
    node_map: Dict[Node, YNode] = field(default_factory=dict)
    gateways: List[Node] = field(default_factory=list)
    with_event_handlers: List[Activity] = field(default_factory=list)
    terminate_events: List[EndTerminateEvent] = field(default_factory=list)

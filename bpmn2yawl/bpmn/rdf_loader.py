"""
RDF Diagram Loader
Builds the in-memory BPMN diagram from a BPMN model stored as RDF

This module provides:
- RDFDiagramLoader.load(): Converts an rdflib.Graph to a BPMNDiagram
- load_diagram(): Parses an RDF file (Turtle by default) and loads it

Node classes are recognized by the local name of their rdf:type, compared
case-insensitively, so both bpmn:startEvent and bpmn:StartEvent work.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from rdflib import RDF, RDFS, Graph, Literal, Namespace, URIRef

from bpmn2yawl.bpmn.elements import (
    ANDGateway,
    Activity,
    AssignTime,
    Assignment,
    BPMNDiagram,
    ConditionType,
    DataObject,
    EndErrorEvent,
    EndPlainEvent,
    EndTerminateEvent,
    IntermediateErrorEvent,
    IntermediateMessageEvent,
    IntermediatePlainEvent,
    IntermediateTimerEvent,
    Lane,
    LoopType,
    MIFlowCondition,
    Node,
    ORGateway,
    Process,
    Property,
    StartPlainEvent,
    SubProcess,
    Task,
    XORDataBasedGateway,
    XOREventBasedGateway,
    associate,
    attach,
    connect,
)
from bpmn2yawl.config import BPMN_NAMESPACE

logger = logging.getLogger(__name__)

BPMN = Namespace(BPMN_NAMESPACE)

# Trigger names recognized in event type names and event definitions
EVENT_TRIGGERS = ("timer", "message", "error", "terminate")

INTERMEDIATE_EVENT_TYPES = frozenset(
    {
        "intermediatecatchevent",
        "intermediatethrowevent",
        "intermediateevent",
        "boundaryevent",
    }
)

GATEWAY_CLASSES = {
    "parallelgateway": ANDGateway,
    "inclusivegateway": ORGateway,
    "exclusivegateway": XORDataBasedGateway,
    "eventbasedgateway": XOREventBasedGateway,
}

INTERMEDIATE_EVENT_CLASSES = {
    "timer": IntermediateTimerEvent,
    "message": IntermediateMessageEvent,
    "error": IntermediateErrorEvent,
}

ASSOCIATION_TYPES = frozenset(
    {"association", "datainputassociation", "dataoutputassociation"}
)


def local_name(uri) -> str:
    """Return the part of a URI after the last '#' or '/'."""
    text = str(uri)
    for separator in ("#", "/"):
        if separator in text:
            text = text.rsplit(separator, 1)[1]
    return text


class RDFDiagramLoader:
    """
    Loads a BPMNDiagram from an RDF graph.

    Subjects are visited in URI order so the same graph always produces the
    same node order, and therefore the same generated YAWL identifiers.
    """

    def __init__(self, graph: Graph):
        self.graph = graph
        self._nodes: Dict[URIRef, Node] = {}
        self._containers: Dict[URIRef, Union[Process, SubProcess]] = {}
        self._lanes: Dict[URIRef, Lane] = {}

    def load(self) -> BPMNDiagram:
        """
        Build the diagram.

        Returns:
            The diagram with one process per RDF process

        Raises:
            ValueError: If a sequence flow references an undeclared node
        """
        diagram = BPMNDiagram()
        flows: List[URIRef] = []
        associations: List[URIRef] = []

        for subject in self._subjects():
            types = self._type_names(subject)
            if "sequenceflow" in types:
                flows.append(subject)
            elif types & ASSOCIATION_TYPES:
                associations.append(subject)
            elif "process" in types:
                process = Process(local_name(subject), self._label(subject))
                self._containers[subject] = process
                diagram.processes.append(process)
            elif "lane" in types:
                self._lanes[subject] = Lane(local_name(subject), self._label(subject))
            else:
                node = self._create_node(subject, types)
                if node is None:
                    if not types & _IGNORED_TYPES:
                        logger.warning(f"Unknown BPMN type {sorted(types)} for {subject}, skipped")
                    continue
                self._nodes[subject] = node
                if isinstance(node, SubProcess):
                    self._containers[subject] = node
                if isinstance(node, DataObject):
                    diagram.data_objects.append(node)

        self._place_nodes(diagram)
        for flow in flows:
            self._add_sequence_flow(flow)
        for association in associations:
            self._add_association(association)
        self._attach_boundary_events()

        definition = next(self.graph.objects(None, BPMN.dataTypeDefinition), None)
        if definition is not None:
            diagram.data_type_definition = str(definition)

        logger.info(
            f"Loaded {len(diagram.processes)} process(es), {len(self._nodes)} node(s) "
            f"and {len(flows)} sequence flow(s)"
        )
        return diagram

    # ==================== Graph access ====================

    def _subjects(self) -> List[URIRef]:
        return sorted(
            {s for s in self.graph.subjects(RDF.type, None) if isinstance(s, URIRef)},
            key=str,
        )

    def _type_names(self, subject) -> Set[str]:
        return {local_name(t).lower() for t in self.graph.objects(subject, RDF.type)}

    def _text(self, subject, predicate, default: str = "") -> str:
        value = self.graph.value(subject, predicate)
        return str(value) if value is not None else default

    def _label(self, subject) -> str:
        label = self.graph.value(subject, BPMN.name)
        if label is None:
            label = self.graph.value(subject, RDFS.label)
        return str(label) if label is not None else ""

    def _is_true(self, subject, predicate) -> bool:
        return self._text(subject, predicate).lower() == "true"

    def _children(self, subject) -> Iterable[URIRef]:
        return sorted(self.graph.subjects(BPMN.hasParent, subject), key=str)

    # ==================== Nodes ====================

    def _create_node(self, subject, types: Set[str]) -> Optional[Node]:
        node_id = local_name(subject)
        label = self._label(subject)

        if types & {"subprocess", "expandedsubprocess"}:
            subprocess = SubProcess(node_id, label)
            self._read_activity(subject, subprocess)
            return subprocess

        if any(t.endswith("task") for t in types):
            task = Task(
                node_id,
                label,
                offered_by=self._optional(subject, BPMN.offeredBy),
                allocated_by=self._optional(subject, BPMN.allocatedBy),
                started_by=self._optional(subject, BPMN.startedBy),
            )
            self._read_activity(subject, task)
            return task

        for type_name, gateway_class in GATEWAY_CLASSES.items():
            if type_name in types:
                return gateway_class(node_id, label)

        if types & {"dataobject", "dataobjectreference"}:
            return DataObject(
                node_id,
                label,
                data_type=self._text(subject, BPMN.dataType, "string"),
                value=self._text(subject, BPMN.value),
            )

        return self._create_event(subject, types, node_id, label)

    def _create_event(self, subject, types: Set[str], node_id: str, label: str) -> Optional[Node]:
        triggers = self._event_triggers(subject, types)

        if any(t.endswith("startevent") for t in types):
            return StartPlainEvent(node_id, label)

        if any(t.endswith("endevent") for t in types):
            if "error" in triggers:
                return EndErrorEvent(node_id, label)
            if "terminate" in triggers:
                return EndTerminateEvent(node_id, label)
            return EndPlainEvent(node_id, label)

        intermediate = types & INTERMEDIATE_EVENT_TYPES or any(
            t.endswith("boundaryevent") or t.startswith("intermediate") for t in types
        )
        if not intermediate:
            return None

        for trigger, event_class in INTERMEDIATE_EVENT_CLASSES.items():
            if trigger in triggers:
                event = event_class(node_id, label)
                if isinstance(event, IntermediateTimerEvent):
                    self._read_timer(subject, event)
                return event
        return IntermediatePlainEvent(node_id, label)

    def _event_triggers(self, subject, types: Set[str]) -> Set[str]:
        """Collect triggers from type names, definition literals and definition nodes."""
        triggers = set()
        for type_name in types:
            for trigger in EVENT_TRIGGERS:
                if type_name.startswith(trigger):
                    triggers.add(trigger)

        for definition in self.graph.objects(subject, BPMN.eventDefinition):
            triggers.add(str(definition).lower())

        for child in self._children(subject):
            for type_name in self._type_names(child):
                for trigger in EVENT_TRIGGERS:
                    if type_name == f"{trigger}eventdefinition":
                        triggers.add(trigger)
        return triggers

    def _read_timer(self, subject, event: IntermediateTimerEvent):
        sources = [subject] + [
            child
            for child in self._children(subject)
            if "timereventdefinition" in self._type_names(child)
        ]
        for source in sources:
            event.time_date = event.time_date or self._text(source, BPMN.timeDate)
            event.time_cycle = event.time_cycle or self._text(source, BPMN.timeCycle)

    def _read_activity(self, subject, activity: Activity):
        loop_condition = self.graph.value(subject, BPMN.loopCondition)
        if loop_condition is not None:
            activity.loop_type = LoopType.STANDARD
            activity.loop_condition = str(loop_condition)

        characteristics = self.graph.value(subject, BPMN.loopCharacteristics)
        if characteristics is not None or self._is_true(subject, BPMN.multiInstance):
            activity.is_multiple_instance = True
            flow_condition = self._text(subject, BPMN.miFlowCondition, "none").lower()
            try:
                activity.mi_flow_condition = MIFlowCondition(flow_condition)
            except ValueError:
                logger.warning(f"Unknown multi-instance flow condition {flow_condition!r} on {subject}")

        for prop in sorted(self.graph.objects(subject, BPMN.hasProperty), key=str):
            activity.properties.append(
                Property(
                    self._text(prop, BPMN.name),
                    self._text(prop, BPMN.type, "string"),
                    self._text(prop, BPMN.value),
                )
            )

        for assignment in sorted(self.graph.objects(subject, BPMN.hasAssignment), key=str):
            assign_time = self._text(assignment, BPMN.assignTime, "start").lower()
            activity.assignments.append(
                Assignment(
                    self._text(assignment, BPMN.to),
                    self._text(assignment, BPMN["from"]),
                    AssignTime.END if assign_time == "end" else AssignTime.START,
                )
            )

    def _optional(self, subject, predicate) -> Optional[str]:
        value = self.graph.value(subject, predicate)
        return str(value) if value is not None else None

    # ==================== Structure ====================

    def _place_nodes(self, diagram: BPMNDiagram):
        """Add every node to its process or subprocess, recording its lane."""
        lane_members: Dict[URIRef, Lane] = {}
        for lane_uri, lane in self._lanes.items():
            for member in self.graph.objects(lane_uri, BPMN.flowNodeRef):
                lane_members[self._resolve_ref(member)] = lane

        for subject, node in self._nodes.items():
            if isinstance(node, DataObject):
                continue
            container, lane = self._container_of(subject)
            lane = lane or lane_members.get(subject)
            if lane is not None:
                node.parent = lane
            if container is None:
                container = self._default_process(diagram)
                logger.debug(f"Node {node.id} has no parent, added to {container.id}")
            container.add(node)

    def _container_of(self, subject):
        """Walk bpmn:hasParent up to the enclosing process or subprocess."""
        lane = None
        seen = {subject}
        parent = self.graph.value(subject, BPMN.hasParent)
        while parent is not None and parent not in seen:
            if parent in self._containers:
                return self._containers[parent], lane
            if lane is None and parent in self._lanes:
                lane = self._lanes[parent]
            seen.add(parent)
            parent = self.graph.value(parent, BPMN.hasParent)
        return None, lane

    def _default_process(self, diagram: BPMNDiagram) -> Process:
        if not diagram.processes:
            diagram.processes.append(Process("process"))
        return diagram.processes[0]

    def _resolve_ref(self, ref) -> URIRef:
        """Node references may be URIs or plain id literals."""
        if isinstance(ref, Literal):
            for subject in self._nodes:
                if local_name(subject) == str(ref):
                    return subject
        return ref

    def _node(self, ref, flow) -> Node:
        node = self._nodes.get(self._resolve_ref(ref)) if ref is not None else None
        if node is None:
            raise ValueError(f"Flow {flow} references undeclared node {ref}")
        return node

    # ==================== Edges ====================

    def _add_sequence_flow(self, flow: URIRef):
        source_ref = self.graph.value(flow, BPMN.sourceRef)
        source = self._node(source_ref, flow)
        target = self._node(self.graph.value(flow, BPMN.targetRef), flow)

        condition_type = ConditionType.NONE
        expression = self._text(flow, BPMN.conditionBody)
        if expression:
            condition_type = ConditionType.EXPRESSION
        if (
            self._text(flow, BPMN.conditionType).lower() == ConditionType.DEFAULT.value
            or (self._resolve_ref(source_ref), BPMN.default, flow) in self.graph
        ):
            condition_type = ConditionType.DEFAULT
            expression = ""

        connect(source, target, condition_type, expression, local_name(flow))

    def _add_association(self, association: URIRef):
        source = self._nodes.get(self._resolve_ref(self.graph.value(association, BPMN.sourceRef)))
        target = self._nodes.get(self._resolve_ref(self.graph.value(association, BPMN.targetRef)))
        if source is None or target is None:
            logger.warning(f"Association {association} has an undeclared end, skipped")
            return
        associate(source, target, local_name(association))

    def _attach_boundary_events(self):
        for subject, node in self._nodes.items():
            ref = self.graph.value(subject, BPMN.attachedToRef)
            if ref is None:
                continue
            activity = self._nodes.get(self._resolve_ref(ref))
            if not isinstance(activity, Activity) or not hasattr(node, "activity"):
                logger.warning(f"Boundary event {subject} is not attached to an activity")
                continue
            attach(node, activity)


# Structural types that carry no node of their own
_IGNORED_TYPES = frozenset(
    {
        "laneset",
        "flownoderef",
        "definitions",
        "timereventdefinition",
        "messageeventdefinition",
        "erroreventdefinition",
        "terminateeventdefinition",
        "signaleventdefinition",
        "timedate",
        "timecycle",
        "timeduration",
        "conditionexpression",
        "multiinstanceloopcharacteristics",
        "property",
        "assignment",
    }
)


def load_diagram(source, format: str = "turtle") -> BPMNDiagram:
    """Parse an RDF document and load the BPMN diagram it describes."""
    graph = Graph()
    graph.parse(source, format=format)
    return RDFDiagramLoader(graph).load()

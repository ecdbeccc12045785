# Decomposition Builder
# Builds one YAWL decomposition per BPMN pool or subprocess

import logging
from typing import List

from bpmn2yawl.bpmn.elements import (
    Activity,
    Container,
    DataObject,
    Gateway,
    IntermediateEvent,
    SubProcess,
)
from bpmn2yawl.config import ROOT_NET_ID
from bpmn2yawl.conversion.boundary_events import ExceptionCompiler
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext
from bpmn2yawl.conversion.elements import ElementMapper
from bpmn2yawl.conversion.flows import FlowLinker
from bpmn2yawl.conversion.gateways import GatewayFolder
from bpmn2yawl.conversion.loops import LoopRewriter
from bpmn2yawl.yawl.model import (
    YDecomposition,
    YInputCondition,
    YOutputCondition,
    YTask,
)

logger = logging.getLogger(__name__)


class DecompositionBuilder:
    """
    Builds the decomposition of a pool (the root net) or of a subprocess.

    Nodes are mapped in one pass with gateways deferred, because folding a
    gateway needs the tasks of its neighbours. Edges, exceptions and loops
    are only handled once every node of the decomposition exists.
    Subprocesses recurse into a child decomposition before their composite
    task is created.
    """

    def __init__(self, context: TranslationContext):
        self._context = context
        self.mapper = ElementMapper(context, self)
        self.gateways = GatewayFolder(context)
        self.flows = FlowLinker(context)
        self.exceptions = ExceptionCompiler(context, self.mapper)
        self.loops = LoopRewriter(context)

    def build(self, container: Container) -> YDecomposition:
        context = self._context
        context.depth += 1
        try:
            scope = DecompositionScope(self._create_decomposition(container))
            self._map_nodes(scope, container)
            self._close_conditions(scope)

            for data_object in self._data_objects(container):
                self.mapper.data.map_data_object(scope, data_object)

            self.flows.link(scope)

            for activity in scope.with_event_handlers:
                self.exceptions.compile(scope, activity)

            self.loops.rewrite(scope)

            for terminate in scope.terminate_events:
                close_cancellation_set(scope.decomposition, scope.node_map[terminate])
        finally:
            context.depth -= 1

        decomposition = scope.decomposition
        logger.info(
            f"Built decomposition {decomposition.id}: {len(decomposition.nodes)} nodes, "
            f"{len(decomposition.edges)} edges"
        )
        return decomposition

    def _create_decomposition(self, container: Container) -> YDecomposition:
        model = self._context.model
        if isinstance(container, SubProcess):
            label = (container.label or container.id).replace(" ", "")
            return model.create_decomposition(self._context.generate_id(label))
        decomposition = model.create_decomposition(ROOT_NET_ID)
        decomposition.is_root_net = True
        return decomposition

    def _map_nodes(self, scope: DecompositionScope, container: Container) -> None:
        for node in container.child_nodes:
            if isinstance(node, Activity) and node.attached_events:
                scope.with_event_handlers.append(node)

            # Attached events are compiled with their host activity
            if isinstance(node, IntermediateEvent) and node.is_attached:
                continue

            ynode = self.mapper.map(scope, node)
            if ynode is None and isinstance(node, Gateway):
                scope.gateways.append(node)
            elif ynode is not None:
                logger.debug(f"{node.kind.value} {node.id} mapped to {ynode.id}")

        for gateway in scope.gateways:
            self.gateways.fold(scope, gateway)

    def _close_conditions(self, scope: DecompositionScope) -> None:
        decomposition = scope.decomposition
        generate_id = self._context.generate_id
        if decomposition.output_condition is None:
            decomposition.create_output_condition(generate_id("Output"), "Output Condition")
        if decomposition.input_condition is None:
            decomposition.create_input_condition(generate_id("Input"), "Input Condition")
            if not scope.node_map:
                decomposition.connect_input_to_output()

    def _data_objects(self, container: Container) -> List[DataObject]:
        data_objects = list(self._context.diagram.data_objects)
        for node in container.child_nodes:
            if isinstance(node, DataObject) and node not in data_objects:
                data_objects.append(node)
        return data_objects


def close_cancellation_set(decomposition: YDecomposition, terminate_task: YTask) -> None:
    """A terminate task cancels every other node of its decomposition."""
    for node in decomposition.nodes:
        if isinstance(node, (YInputCondition, YOutputCondition)):
            continue
        terminate_task.add_to_cancellation_set(node)

# Flow Linker
# Turns BPMN sequence flows into ordered YAWL edges

import logging
from typing import Dict

from bpmn2yawl.bpmn.elements import (
    ConditionType,
    EndErrorEvent,
    EndTerminateEvent,
    Gateway,
)
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext
from bpmn2yawl.yawl.model import YEdge, YNode

logger = logging.getLogger(__name__)


class FlowLinker:
    """
    Links the mapped nodes of one decomposition.

    Every outgoing edge of a YAWL node gets the next ordering index of that
    node, in flow order. A default flow is held back until all its siblings
    are numbered, so it always comes last. Flows whose source or target has
    no YAWL counterpart are dropped.
    """

    def __init__(self, context: TranslationContext):
        self._context = context

    def link(self, scope: DecompositionScope) -> None:
        decomposition = scope.decomposition
        node_map = scope.node_map
        counter: Dict[YNode, int] = {}

        for node, source_task in list(node_map.items()):
            if isinstance(node, (EndErrorEvent, EndTerminateEvent)):
                decomposition.create_edge(
                    source_task, decomposition.output_condition, ordering=1
                )
                if isinstance(node, EndTerminateEvent):
                    scope.terminate_events.append(node)
                continue

            default_edge = None
            for flow in node.outgoing_sequence_flows:
                target_task = node_map.get(flow.target)
                if target_task is None:
                    logger.debug(f"Flow {node.id} -> {flow.target.id} dropped: target not mapped")
                    continue

                # Both ends folded onto the same task, unless a gateway loops on itself
                if source_task is target_task and not (
                    isinstance(node, Gateway) and node is flow.target
                ):
                    continue

                if flow.condition_type == ConditionType.DEFAULT:
                    default_edge = YEdge(source_task, target_task, True, "", 0)
                    continue

                order = counter.get(source_task, 0) + 1
                counter[source_task] = order
                predicate = ""
                if flow.condition_type == ConditionType.EXPRESSION:
                    predicate = flow.condition_expression
                decomposition.create_edge(source_task, target_task, False, predicate, order)

            if default_edge is not None:
                order = counter.get(default_edge.source, 0) + 1
                counter[default_edge.source] = order
                default_edge.ordering = order
                decomposition.add_edge(default_edge)

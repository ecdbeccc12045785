# Loop Rewriter
# Converts BPMN standard loops and gateway-only cycles into YAWL self loops

import logging
from typing import Iterator, Tuple

from bpmn2yawl.bpmn.elements import (
    CONTROL_GATEWAY_KINDS,
    Activity,
    ConditionType,
    LoopType,
    Node,
    SequenceFlow,
)
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext
from bpmn2yawl.yawl.model import SplitJoinType, YDecomposition, YTask

logger = logging.getLogger(__name__)


def _is_control_gateway(node: Node) -> bool:
    return getattr(node, "kind", None) in CONTROL_GATEWAY_KINDS


def _gateway_cycles(node: Node) -> Iterator[Tuple[SequenceFlow, SequenceFlow]]:
    """Yield (first, second) flows of every node -> gateway -> gateway -> node cycle."""
    for first in node.outgoing_sequence_flows:
        first_gateway = first.target
        if not _is_control_gateway(first_gateway):
            continue
        for second in first_gateway.outgoing_sequence_flows:
            second_gateway = second.target
            if not _is_control_gateway(second_gateway):
                continue
            for third in second_gateway.outgoing_sequence_flows:
                if third.target is node:
                    yield first, second


def is_looping_by_sequence_flow(node: Node) -> bool:
    """
    A node loops through control flow when one of its outgoing flows reaches
    a gateway, a flow of that gateway reaches a second gateway and a flow of
    the second gateway leads back to the node.
    """
    for _ in _gateway_cycles(node):
        return True
    return False


def loop_expression(node: Node) -> str:
    """Condition of the flow between the two gateways of the cycle, if any."""
    for _, second in _gateway_cycles(node):
        if second.condition_type == ConditionType.EXPRESSION:
            return second.condition_expression
    return ""


def loop_predicate(activity: Activity) -> str:
    if activity.loop_type == LoopType.STANDARD:
        return activity.loop_condition
    return loop_expression(activity)


class LoopRewriter:
    """
    Rewrites looping tasks of one decomposition into explicit self loops.

    A self loop needs XOR decorators on the task, so AND decorators are first
    factored out into a separate split task (downstream) or join task
    (upstream).
    """

    def __init__(self, context: TranslationContext):
        self._context = context

    def rewrite(self, scope: DecompositionScope) -> None:
        decomposition = scope.decomposition
        for activity in self._context.pop_looping_activities(decomposition):
            task = scope.node_map.get(activity)
            if not isinstance(task, YTask):
                logger.warning(f"Looping activity {activity.id} has no task in {decomposition.id}")
                continue
            self.rewrite_task(decomposition, task, loop_predicate(activity))

    def rewrite_task(self, decomposition: YDecomposition, task: YTask, predicate: str) -> None:
        if task.split_type == SplitJoinType.AND:
            split = decomposition.create_task(
                self._context.generate_id(), "SplitTask", split_type=SplitJoinType.AND
            )
            decomposition.move_outgoing_edges(task, split)
            decomposition.create_edge(task, split, ordering=1)

        if task.join_type == SplitJoinType.AND:
            join = decomposition.create_task(
                self._context.generate_id(),
                "JoinTask",
                split_type=SplitJoinType.AND,
                join_type=SplitJoinType.AND,
            )
            decomposition.move_incoming_edges(task, join)
            decomposition.create_edge(join, task, ordering=1)

        add_first_edge(decomposition, task, task, predicate)
        task.split_type = SplitJoinType.XOR
        task.join_type = SplitJoinType.XOR
        logger.debug(f"Task {task.id} rewritten with a self loop")


def add_first_edge(decomposition: YDecomposition, source: YTask, target, predicate: str):
    """
    Insert an edge at ordering 1 in front of the existing outgoing edges.

    The existing edges keep their relative order and shift by one. When no
    default edge remains among them, the last one becomes the default if it
    carries no predicate.
    """
    existing = sorted(source.outgoing_edges, key=lambda e: e.ordering)
    for position, edge in enumerate(existing, start=2):
        edge.ordering = position
    if existing and not any(e.is_default for e in existing) and not existing[-1].predicate:
        existing[-1].is_default = True
    return decomposition.create_edge(source, target, False, predicate, 1)

# Exception Compiler
# Compiles events attached to activity boundaries into YAWL cancellation
# sets, guarded error edges and boolean exception flags

import logging
from typing import List, Optional

from bpmn2yawl.bpmn.elements import (
    Activity,
    IntermediateErrorEvent,
    IntermediateEvent,
    IntermediateTimerEvent,
)
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext
from bpmn2yawl.conversion.data import add_mapping, add_variable
from bpmn2yawl.conversion.elements import ElementMapper, ensure_task_decomposition
from bpmn2yawl.conversion.loops import add_first_edge
from bpmn2yawl.yawl.model import (
    SplitJoinType,
    YCondition,
    YDecomposition,
    YNode,
    YTask,
    YVariable,
)

logger = logging.getLogger(__name__)

# Tasks mapped from end error events carry this in their id
ERROR_EVENT_ID_MARKER = "ErrorEvent"


def exception_flag_name(host: YTask, source: YTask) -> str:
    return f"{host.id}_{source.id}_exception"


def exception_predicate(decomposition: YDecomposition, host: YTask, source: YTask) -> str:
    return f"/{decomposition.id}/{exception_flag_name(host, source)}/text()"


def _next_ordering(node: YNode) -> int:
    return max((e.ordering for e in node.outgoing_edges), default=0) + 1


class ExceptionCompiler:
    """
    Compiles the attached events of one activity.

    Any attached event other than a timer forces the host task's split to
    XOR; outgoing edges that need the previous split semantics move to a new
    split task placed right after the host.

    Error events route the host to the error handler through an edge guarded
    by a boolean flag. The flag is set to true by the error end event inside
    the host's own decomposition and copied to the enclosing net when the
    host completes.

    Timer events become timer tasks that start together with the host; the
    host and its timers cancel each other.
    """

    def __init__(self, context: TranslationContext, mapper: ElementMapper):
        self._context = context
        self._mapper = mapper

    def compile(self, scope: DecompositionScope, activity: Activity) -> None:
        host = scope.node_map.get(activity)
        if not isinstance(host, YTask):
            logger.warning(f"Activity {activity.id} with attached events has no task, events ignored")
            return

        timers = [e for e in activity.attached_events if isinstance(e, IntermediateTimerEvent)]
        others = [e for e in activity.attached_events if not isinstance(e, IntermediateTimerEvent)]

        source = host
        if others:
            source = self._force_xor_split(scope.decomposition, host)

        for event in others:
            if isinstance(event, IntermediateErrorEvent):
                self.compile_error_event(scope, host, source, event)
            else:
                logger.debug(f"Attached {event.kind.value} {event.id} on {activity.id} has no routing")

        if timers:
            self.compile_timer_events(scope, host, timers)

    # ==================== Split factoring ====================

    def _force_xor_split(self, decomposition: YDecomposition, host: YTask) -> YTask:
        """Make the host an XOR split, returning the task that now owns its successors."""
        source = host
        if len(host.outgoing_edges) > 1:
            source = decomposition.create_task(
                self._context.generate_id(), "newSplitTask", split_type=host.split_type
            )
            decomposition.move_outgoing_edges(host, source)
            decomposition.create_edge(host, source, ordering=1)
            logger.debug(f"Split of {host.id} moved to {source.id}")
        host.split_type = SplitJoinType.XOR
        return source

    # ==================== Error events ====================

    def compile_error_event(
        self,
        scope: DecompositionScope,
        host: YTask,
        source: YTask,
        event: IntermediateErrorEvent,
    ) -> None:
        decomposition = scope.decomposition
        target = self._target_of(scope, event)
        if target is None:
            return

        predicate = exception_predicate(decomposition, host, source)
        existing = list(host.outgoing_edges)
        add_first_edge(decomposition, host, target, predicate)
        for edge in existing:
            if not edge.predicate:
                edge.is_default = True

        flag_name = exception_flag_name(host, source)
        flag = decomposition.find_variable(flag_name)
        if flag is None:
            flag = YVariable(flag_name, "boolean", "false")
            decomposition.local_variables.append(flag)

        inner = host.decomposes_to
        if inner is None:
            return
        inner_name = f"_{source.id}_exception"
        add_mapping(
            host.completed_mappings,
            f"<{flag_name}>{{/{inner.id}/{inner_name}/text()}}</{flag_name}>",
            flag,
        )
        inner_flag = inner.find_variable(inner_name)
        if inner_flag is None:
            inner_flag = YVariable(inner_name, "boolean")
            inner.local_variables.append(inner_flag)
        add_variable(inner.output_params, YVariable(inner_name, "boolean"))

        error_task = self._find_error_task(inner)
        if error_task is None:
            logger.debug(f"No error end event inside {inner.id} raises {event.id}")
            return
        add_mapping(
            error_task.completed_mappings,
            f"<{inner_name}>true</{inner_name}>",
            inner_flag,
        )
        ensure_task_decomposition(self._context.model, error_task)
        logger.debug(f"Error event {event.id} routes {host.id} to {target.id} via {flag_name}")

    @staticmethod
    def _find_error_task(decomposition: YDecomposition) -> Optional[YTask]:
        for task in decomposition.tasks:
            if ERROR_EVENT_ID_MARKER in task.id:
                return task
        return None

    # ==================== Timer events ====================

    def compile_timer_events(
        self,
        scope: DecompositionScope,
        host: YTask,
        timers: List[IntermediateTimerEvent],
    ) -> None:
        decomposition = scope.decomposition
        timer_tasks = []
        for timer in timers:
            timer_task = self._mapper.map_timer_event(scope, timer, attached=True)
            scope.node_map[timer] = timer_task
            timer_tasks.append(timer_task)

            target = self._target_of(scope, timer)
            if target is not None:
                decomposition.create_edge(timer_task, target, ordering=1)

        for timer_task in timer_tasks:
            host.add_to_cancellation_set(timer_task)
            timer_task.add_to_cancellation_set(host)
            for other in timer_tasks:
                timer_task.add_to_cancellation_set(other)

        predecessor = self._shared_predecessor(decomposition, host)
        if predecessor is None:
            return
        for timer_task in timer_tasks:
            decomposition.create_edge(
                predecessor, timer_task, ordering=_next_ordering(predecessor)
            )

    def _shared_predecessor(self, decomposition: YDecomposition, host: YTask) -> Optional[YTask]:
        """Return a task that enables the host and its timers at the same time."""
        incoming = list(host.incoming_edges)
        if not incoming:
            logger.warning(f"Task {host.id} has no incoming edge, its timers cannot be enabled")
            return None

        if len(incoming) > 1:
            predecessor = decomposition.create_task(
                self._context.generate_id(),
                "Task",
                split_type=SplitJoinType.AND,
                join_type=host.join_type,
            )
            decomposition.move_incoming_edges(host, predecessor)
            decomposition.create_edge(predecessor, host, ordering=1)
            host.join_type = SplitJoinType.NONE
            return predecessor

        edge = incoming[0]
        predecessor = edge.source
        if isinstance(predecessor, YCondition):
            gateway = decomposition.create_task(
                self._context.generate_id(), "Task", split_type=SplitJoinType.AND
            )
            decomposition.remove_edge(edge)
            edge.target = gateway
            decomposition.add_edge(edge)
            decomposition.create_edge(gateway, host, ordering=1)
            return gateway

        if len(predecessor.outgoing_edges) > 1:
            if predecessor.split_type != SplitJoinType.AND:
                # TODO: factor out an AND split task between the predecessor and the host
                logger.warning(
                    f"Predecessor {predecessor.id} of {host.id} splits "
                    f"{predecessor.split_type.value}, timers are not synchronized with the host"
                )
            return predecessor

        predecessor.split_type = SplitJoinType.AND
        return predecessor

    # ==================== Helpers ====================

    def _target_of(self, scope: DecompositionScope, event: IntermediateEvent) -> Optional[YNode]:
        flows = event.outgoing_sequence_flows
        target = scope.node_map.get(flows[0].target) if flows else None
        if target is None:
            logger.warning(f"Attached event {event.id} leads to no mapped node, event ignored")
        return target

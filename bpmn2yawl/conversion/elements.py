# Element Mapper
# Dispatches every BPMN node to its YAWL counterpart(s)

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from bpmn2yawl.bpmn.elements import (
    Activity,
    Gateway,
    IntermediateEvent,
    IntermediateTimerEvent,
    LoopType,
    Node,
    NodeKind,
    SubProcess,
)
from bpmn2yawl.config import MAX_NESTING_DEPTH, TIMER_DATE_FORMAT
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext
from bpmn2yawl.conversion.data import (
    DataBinder,
    TaskVariables,
    add_mapping,
    add_variable,
    variable_query,
)
from bpmn2yawl.conversion.loops import is_looping_by_sequence_flow
from bpmn2yawl.conversion.multi_instance import MultiInstanceCompiler
from bpmn2yawl.conversion.resourcing import ResourcingBinder
from bpmn2yawl.yawl.model import (
    TimerTrigger,
    XsiType,
    YCondition,
    YDecomposition,
    YModel,
    YNode,
    YTask,
    YTimer,
    YVariable,
)

if TYPE_CHECKING:
    from bpmn2yawl.conversion.decomposition import DecompositionBuilder

logger = logging.getLogger(__name__)


def ensure_task_decomposition(model: YModel, task: YTask) -> YDecomposition:
    """Give ``task`` an executable decomposition of its own if it has none."""
    if task.decomposes_to is None:
        decomposition = model.create_decomposition(
            task.id, XsiType.WEB_SERVICE_GATEWAY_FACTS
        )
        task.decomposes_to = decomposition
    return task.decomposes_to


class ElementMapper:
    """
    Maps BPMN nodes to YAWL nodes.

    Subprocess -> composite task
    Activity -> task
    Start plain event -> input condition
    End plain event -> output condition
    XOR event-based gateway -> condition
    Intermediate timer event -> timer task
    Intermediate message event after an event-based gateway -> task
    Intermediate event after any gateway -> task
    Intermediate plain event before a gateway -> condition
    End error event -> task
    End terminate event -> task

    AND, OR and data-based XOR gateways are not mapped here; they are
    resolved by the gateway folder once their neighbours are known.
    """

    # Handler method per node kind; every kind must be listed
    DISPATCH = {
        NodeKind.TASK: "_map_task",
        NodeKind.SUBPROCESS: "_map_composite_task",
        NodeKind.START_PLAIN_EVENT: "_map_start_event",
        NodeKind.END_PLAIN_EVENT: "_map_end_event",
        NodeKind.END_ERROR_EVENT: "_map_end_error_event",
        NodeKind.END_TERMINATE_EVENT: "_map_end_terminate_event",
        NodeKind.INTERMEDIATE_PLAIN_EVENT: "_map_intermediate_plain_event",
        NodeKind.INTERMEDIATE_TIMER_EVENT: "_map_intermediate_timer_event",
        NodeKind.INTERMEDIATE_MESSAGE_EVENT: "_map_intermediate_message_event",
        NodeKind.INTERMEDIATE_ERROR_EVENT: "_map_intermediate_error_event",
        NodeKind.AND_GATEWAY: "_defer",
        NodeKind.OR_GATEWAY: "_defer",
        NodeKind.XOR_DATA_GATEWAY: "_defer",
        NodeKind.XOR_EVENT_GATEWAY: "_map_event_based_gateway",
        NodeKind.DATA_OBJECT: "_skip",
    }

    def __init__(self, context: TranslationContext, builder: "DecompositionBuilder"):
        self._context = context
        self._builder = builder
        self.data = DataBinder(context)
        self.multi_instance = MultiInstanceCompiler(context)
        self.resourcing = ResourcingBinder(context)

    def map(self, scope: DecompositionScope, node: Node) -> Optional[YNode]:
        """Map ``node`` and register the result in the scope's node map.

        Returns:
            The YAWL node, or None when the node is deferred or has no counterpart
        """
        handler = getattr(self, self.DISPATCH[node.kind])
        ynode = handler(scope, node)
        if ynode is not None:
            scope.node_map[node] = ynode
        return ynode

    # ==================== Activities ====================

    def _map_task(
        self,
        scope: DecompositionScope,
        activity: Activity,
        sub_decomposition: Optional[YDecomposition] = None,
    ) -> YTask:
        decomposition = scope.decomposition
        task = decomposition.create_task(
            self._context.generate_id("task"), activity.label or activity.id
        )

        task_variables = TaskVariables()
        self.data.map_activity_properties(decomposition, activity, task, task_variables)
        self.data.map_activity_assignments(decomposition, activity, task, task_variables)

        if sub_decomposition is None:
            sub_decomposition = ensure_task_decomposition(self._context.model, task)
        else:
            task.decomposes_to = sub_decomposition
        self.data.bind_task_variables(decomposition, task_variables, sub_decomposition)

        if activity.is_multiple_instance:
            self.multi_instance.compile(decomposition, activity, task)

        if activity.loop_type == LoopType.STANDARD or is_looping_by_sequence_flow(activity):
            self._context.register_looping(decomposition, activity)

        self.resourcing.bind(activity, task)
        return task

    def _map_composite_task(self, scope: DecompositionScope, subprocess: SubProcess) -> YTask:
        if self._context.depth >= MAX_NESTING_DEPTH:
            logger.warning(
                f"Subprocess {subprocess.id} nested deeper than {MAX_NESTING_DEPTH} levels, "
                f"translated as an atomic task"
            )
            return self._map_task(scope, subprocess)

        sub_decomposition = self._builder.build(subprocess)
        return self._map_task(scope, subprocess, sub_decomposition)

    # ==================== Events ====================

    def _map_start_event(self, scope, node):
        return scope.decomposition.create_input_condition(
            self._context.generate_id("input"), "inputCondition"
        )

    def _map_end_event(self, scope, node):
        return scope.decomposition.create_output_condition(
            self._context.generate_id("output"), "outputCondition"
        )

    def _map_end_error_event(self, scope, node):
        return scope.decomposition.create_task(
            self._context.generate_id("ErrorEvent"), "TaskMappedFromErrorEvent"
        )

    def _map_end_terminate_event(self, scope, node):
        return scope.decomposition.create_task(
            self._context.generate_id("endTerminate"), "CancellationTask"
        )

    def _map_intermediate_timer_event(self, scope, node):
        return self.map_timer_event(scope, node, attached=False)

    def _map_intermediate_message_event(self, scope, node):
        predecessor = node.predecessor
        if predecessor is not None and predecessor.kind == NodeKind.XOR_EVENT_GATEWAY:
            return self._map_event_task(scope, "msg", "TaskMappedFromIntermediateMessageEvent")
        return self._map_intermediate_event(scope, node)

    def _map_intermediate_error_event(self, scope, node):
        return self._map_intermediate_event(scope, node)

    def _map_intermediate_plain_event(self, scope, node):
        if isinstance(node.predecessor, Gateway):
            return self._map_intermediate_event(scope, node)
        if isinstance(node.successor, Gateway):
            return scope.decomposition.create_condition(
                self._context.generate_id("plain"),
                "ConditionMappedFromIntermediatePlainEvent",
            )
        logger.warning(f"Intermediate event {node.id} has no YAWL counterpart, its flows are dropped")
        return None

    def _map_intermediate_event(self, scope, node: IntermediateEvent) -> Optional[YTask]:
        if isinstance(node.predecessor, Gateway):
            return self._map_event_task(scope, "intermediate", "TaskMappedFromIntermediateEvent")
        logger.warning(f"Intermediate event {node.id} has no YAWL counterpart, its flows are dropped")
        return None

    def _map_event_task(self, scope, infix: str, name: str) -> YTask:
        task = scope.decomposition.create_task(self._context.generate_id(infix), name)
        ensure_task_decomposition(self._context.model, task)
        return task

    def map_timer_event(
        self, scope: DecompositionScope, event: IntermediateTimerEvent, attached: bool
    ) -> YTask:
        """
        Map a timer event to a timer task.

        A free-standing timer starts counting when the task is enabled, a
        timer attached to an activity when that activity executes. The timer
        value can be supplied at runtime through the ``<task-id>_timer``
        variable.
        """
        decomposition = scope.decomposition
        task = decomposition.create_task(self._context.generate_id("timer"), "TimerTask")

        trigger = TimerTrigger.ON_EXECUTING if attached else TimerTrigger.ON_ENABLED
        timer = YTimer(trigger, event.time_cycle, self._parse_time_date(event))
        task.timer = timer

        variable = YVariable(f"{task.id}_timer", "string", read_only=False)
        decomposition.local_variables.append(variable)
        timer.net_param = variable.name
        add_mapping(
            task.starting_mappings,
            variable_query(decomposition.id, variable.name),
            variable,
        )

        task_decomposition = ensure_task_decomposition(self._context.model, task)
        add_variable(task_decomposition.input_params, variable)
        return task

    @staticmethod
    def _parse_time_date(event: IntermediateTimerEvent) -> Optional[datetime]:
        text = (event.time_date or "").strip()
        if not text:
            return None
        try:
            return datetime.strptime(text, TIMER_DATE_FORMAT)
        except ValueError as e:
            logger.warning(f"Timer event {event.id} has an unreadable date {text!r}: {e}")
            return None

    # ==================== Gateways ====================

    def _map_event_based_gateway(self, scope, node):
        predecessor = node.predecessor
        mapped = scope.node_map.get(predecessor) if predecessor is not None else None
        if isinstance(mapped, YCondition):
            return mapped
        return scope.decomposition.create_condition(
            self._context.generate_id("EXorGW"), "Condition"
        )

    def _defer(self, scope, node):
        return None

    def _skip(self, scope, node):
        return None


_unhandled = set(NodeKind).difference(ElementMapper.DISPATCH)
if _unhandled:
    raise TypeError(f"ElementMapper has no handler for {sorted(k.value for k in _unhandled)}")

# Gateway Folder
# Turns BPMN gateways into YAWL split/join decorators

import logging
from typing import Callable, Optional

from bpmn2yawl.bpmn.elements import Gateway, Node, NodeKind
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext
from bpmn2yawl.yawl.model import SplitJoinType, YTask

logger = logging.getLogger(__name__)

DECORATOR_BY_KIND = {
    NodeKind.AND_GATEWAY: SplitJoinType.AND,
    NodeKind.OR_GATEWAY: SplitJoinType.OR,
    NodeKind.XOR_DATA_GATEWAY: SplitJoinType.XOR,
}


class GatewayFolder:
    """
    Resolves a deferred gateway to the YAWL task carrying its decorator.

    A gateway that only splits is folded onto the task of its single
    predecessor, one that only joins onto the task of its single successor.
    When the neighbour is unmapped, fans out (or in) itself, or is a
    condition, a new routing task is created instead. A gateway that both
    splits and joins always gets a task of its own.
    """

    def __init__(self, context: TranslationContext):
        self._context = context

    def fold(self, scope: DecompositionScope, gateway: Gateway) -> YTask:
        fan_in = len(gateway.incoming_sequence_flows)
        fan_out = len(gateway.outgoing_sequence_flows)
        split = join = False

        if fan_out > 1 and fan_in > 1:
            task = self._new_task(scope)
            split = join = True
        elif fan_out > 1:
            task = self._resolve(
                scope, gateway.predecessor, lambda n: len(n.outgoing_sequence_flows)
            )
            split = True
        elif fan_in > 1:
            task = self._resolve(
                scope, gateway.successor, lambda n: len(n.incoming_sequence_flows)
            )
            join = True
        else:
            # Pass-through gateway: no decorator needed
            task = self._resolve(
                scope, gateway.predecessor, lambda n: len(n.outgoing_sequence_flows)
            )

        decorator = DECORATOR_BY_KIND.get(gateway.kind)
        if decorator is not None:
            if split:
                task.split_type = decorator
            if join:
                task.join_type = decorator

        scope.node_map[gateway] = task
        logger.debug(
            f"Gateway {gateway.id} resolved to {task.id} (split={split}, join={join})"
        )
        return task

    def _resolve(
        self,
        scope: DecompositionScope,
        neighbour: Optional[Node],
        fan: Callable[[Node], int],
    ) -> YTask:
        """Return the neighbour's task if the decorator can be folded onto it."""
        mapped = scope.node_map.get(neighbour) if neighbour is not None else None
        if mapped is None or fan(neighbour) > 1 or not isinstance(mapped, YTask):
            return self._new_task(scope)
        return mapped

    def _new_task(self, scope: DecompositionScope) -> YTask:
        return scope.decomposition.create_task(self._context.generate_id(), "Task")

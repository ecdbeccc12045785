# Resourcing Binder
# Maps BPMN task initiators and lane roles to YAWL resourcing settings

import logging
from typing import Optional

from bpmn2yawl.bpmn.elements import Activity, Lane, Task
from bpmn2yawl.conversion.context import TranslationContext
from bpmn2yawl.yawl.model import YTask
from bpmn2yawl.yawl.resourcing import DistributionSet, InitiatorType, YResourcing

logger = logging.getLogger(__name__)


def resolve_initiator(value: Optional[str]) -> InitiatorType:
    """Only an explicit "system" (any case) selects the system; default is user."""
    if value is not None and value.lower() == InitiatorType.SYSTEM.value:
        return InitiatorType.SYSTEM
    return InitiatorType.USER


class ResourcingBinder:
    def __init__(self, context: TranslationContext):
        self._context = context

    def bind(self, activity: Activity, task: YTask) -> Optional[YResourcing]:
        """Attach a resourcing block to tasks backed by an atomic BPMN task."""
        if not isinstance(activity, Task):
            return None

        resourcing = YResourcing(
            offer=resolve_initiator(activity.offered_by),
            allocate=resolve_initiator(activity.allocated_by),
            start=resolve_initiator(activity.started_by),
        )
        task.resourcing = resourcing

        if isinstance(activity.parent, Lane):
            role = self._context.resourcing_map.get(activity.parent.id)
            if role is None:
                logger.debug(f"No resourcing role for lane {activity.parent.id}")
                return resourcing

            distribution_set = DistributionSet([role])
            if resourcing.offer == InitiatorType.SYSTEM:
                resourcing.offer_distribution_set = distribution_set
            if resourcing.allocate == InitiatorType.SYSTEM:
                resourcing.allocate_distribution_set = distribution_set

        return resourcing

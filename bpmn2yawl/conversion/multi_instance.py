# Multi-Instance Compiler
# Derives YAWL multiple-instance parameters for BPMN multi-instance activities

import logging

from bpmn2yawl.bpmn.elements import Activity, MIFlowCondition
from bpmn2yawl.config import UNBOUNDED
from bpmn2yawl.conversion.context import TranslationContext
from bpmn2yawl.conversion.data import add_variable
from bpmn2yawl.yawl.model import (
    MULTIPLE_INSTANCE_TASK_XSI_TYPE,
    CreationMode,
    YDecomposition,
    YMIDataInput,
    YMIDataOutput,
    YMultiInstanceParam,
    YTask,
    YVariable,
)

logger = logging.getLogger(__name__)

# Separator used to split the input list and join the output list
DATA_SEPARATOR = " "


class MultiInstanceCompiler:
    """
    Compiles multi-instance markers to YAWL multiple-instance tasks.

    Every instance is created statically; the number of instances is only
    bounded by the engine's "infinite" value and the completion threshold
    follows the activity's flow condition.
    """

    def __init__(self, context: TranslationContext):
        self._context = context

    def compile(self, decomposition: YDecomposition, activity: Activity, task: YTask) -> YMultiInstanceParam:
        """
        Turn ``task`` into a multiple-instance task.

        Args:
            decomposition: Decomposition enclosing the task
            activity: The BPMN multi-instance activity
            task: The task mapped from the activity (must have its own decomposition)

        Returns:
            The multiple-instance parameter block set on the task
        """
        task.is_multiple_task = True
        task.xsi_type = MULTIPLE_INSTANCE_TASK_XSI_TYPE

        param = YMultiInstanceParam(
            minimum=1,
            maximum=UNBOUNDED,
            threshold=self.threshold_for(activity.mi_flow_condition),
            creation_mode=CreationMode.STATIC,
        )
        task.mi_param = param

        local = self._input_variable(task)
        add_variable(decomposition.input_params, local)
        if task.decomposes_to is not None:
            add_variable(task.decomposes_to.input_params, self._input_variable(task))

        param.mi_data_input = YMIDataInput(
            expression=f"/{decomposition.id}/{local.name}",
            splitting_expression=DATA_SEPARATOR,
            formal_input_param=local,
        )
        param.mi_data_output = YMIDataOutput(
            formal_output_expression=f"/{decomposition.id}/{local.name}",
            output_joining_expression=DATA_SEPARATOR,
            result_applied_to_local_variable=local,
        )

        logger.debug(f"Task {task.id} compiled as multiple-instance task (threshold {param.threshold})")
        return param

    @staticmethod
    def threshold_for(flow_condition: MIFlowCondition) -> int:
        """A "one" flow condition completes after the first instance, anything else waits for all."""
        if flow_condition == MIFlowCondition.ONE:
            return 1
        return UNBOUNDED

    @staticmethod
    def _input_variable(task: YTask) -> YVariable:
        return YVariable(f"{task.id}_input", "string")

# Data Binder
# Maps data objects, activity properties and assignments to YAWL variables
# plus the start/completion queries that move values in and out of tasks

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from bpmn2yawl.bpmn.elements import Activity, AssignTime, DataObject
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext
from bpmn2yawl.yawl.model import YDecomposition, YTask, YVariable, YVariableMapping

logger = logging.getLogger(__name__)


def variable_query(owner_id: str, variable_name: str) -> str:
    """Build the query that copies ``variable_name`` out of ``owner_id``'s data.

    This string is read by the YAWL engine and must keep its exact form:
    ``<name>{/owner/name/text()}</name>``.
    """
    return f"<{variable_name}>{{/{owner_id}/{variable_name}/text()}}</{variable_name}>"


def add_mapping(mappings: List[YVariableMapping], query: str, variable: YVariable) -> bool:
    """Append a variable mapping unless the same query text is already present."""
    for mapping in mappings:
        if mapping.query.lower() == query.lower():
            return False
    mappings.append(YVariableMapping(query, variable))
    return True


def add_variable(variables: List[YVariable], variable: YVariable) -> bool:
    """Append a variable unless one with the same name (any case) exists."""
    for existing in variables:
        if existing.name.lower() == variable.name.lower():
            return False
    variables.append(variable)
    return True


@dataclass
class TaskVariables:
    """Variables collected while mapping one activity, before its task
    decomposition exists."""

    local: List[YVariable] = field(default_factory=list)
    input: List[YVariable] = field(default_factory=list)
    output: List[YVariable] = field(default_factory=list)

    def find(self, name: str) -> Optional[YVariable]:
        wanted = name.lower()
        for variable in self.local + self.input + self.output:
            if variable.name.lower() == wanted:
                return variable
        return None


class DataBinder:
    """Binds BPMN data to YAWL variables and variable mappings."""

    def __init__(self, context: TranslationContext):
        self._context = context

    # ==================== Data objects ====================

    def map_data_object(self, scope: DecompositionScope, data_object: DataObject) -> Optional[YVariable]:
        """
        Map a data object to a local variable of the decomposition.

        Tasks the object flows into read the variable when they start, tasks
        that flow into the object write it back on completion.

        Returns:
            The new variable, or None if the object was skipped
        """
        if not data_object.incoming and not data_object.outgoing:
            return None

        node_map = scope.node_map
        readers = [node_map.get(edge.target) for edge in data_object.outgoing]
        writers = [node_map.get(edge.source) for edge in data_object.incoming]
        if not any(readers) and not any(writers):
            # Associated with nodes of another decomposition
            return None

        decomposition = scope.decomposition
        name = data_object.label or data_object.id
        if decomposition.find_variable(name) is not None:
            logger.debug(f"Variable {name} already defined in {decomposition.id}, data object skipped")
            return None

        variable = YVariable(name, data_object.data_type or "string", data_object.value)
        decomposition.local_variables.append(variable)

        for task in readers:
            if not isinstance(task, YTask):
                continue
            add_mapping(task.starting_mappings, variable_query(decomposition.id, name), variable)
            if task.decomposes_to is not None:
                add_variable(task.decomposes_to.input_params, variable)

        for task in writers:
            if not isinstance(task, YTask):
                continue
            add_mapping(task.completed_mappings, variable_query(task.id, name), variable)
            if task.decomposes_to is not None:
                add_variable(task.decomposes_to.output_params, variable)

        return variable

    # ==================== Activity data ====================

    def map_activity_properties(
        self,
        decomposition: YDecomposition,
        activity: Activity,
        task: YTask,
        task_variables: TaskVariables,
    ) -> None:
        """Each property becomes a variable read on start and written back on completion."""
        for prop in activity.properties:
            var_type = prop.type.lower() if prop.type else ""
            if not var_type or var_type == "null":
                var_type = "string"

            variable = self._ensure_variable(
                decomposition, task_variables, prop.name, var_type, prop.value
            )

            add_mapping(
                task.starting_mappings,
                variable_query(decomposition.id, variable.name),
                variable,
            )
            add_mapping(
                task.completed_mappings,
                variable_query(task.id, variable.name),
                variable,
            )

    def map_activity_assignments(
        self,
        decomposition: YDecomposition,
        activity: Activity,
        task: YTask,
        task_variables: TaskVariables,
    ) -> None:
        """Start assignments read from the net, end assignments write back from the task."""
        for assignment in activity.assignments:
            if assignment.assign_time == AssignTime.START:
                variable = self._ensure_variable(
                    decomposition, task_variables, assignment.to, bucket=task_variables.input
                )
                add_mapping(
                    task.starting_mappings,
                    variable_query(decomposition.id, variable.name),
                    variable,
                )
            elif assignment.assign_time == AssignTime.END:
                variable = self._ensure_variable(
                    decomposition, task_variables, assignment.to, bucket=task_variables.output
                )
                add_mapping(
                    task.completed_mappings,
                    variable_query(task.id, variable.name),
                    variable,
                )

    def bind_task_variables(
        self,
        decomposition: YDecomposition,
        task_variables: TaskVariables,
        task_decomposition: Optional[YDecomposition],
    ) -> None:
        """Declare collected locals on the enclosing net and expose every
        collected variable as a parameter of the task's own decomposition."""
        for variable in task_variables.local:
            add_variable(decomposition.local_variables, variable)

        if task_decomposition is None:
            return

        for variable in task_variables.local:
            add_variable(task_decomposition.input_params, variable)
            add_variable(task_decomposition.output_params, variable)
        for variable in task_variables.input:
            add_variable(task_decomposition.input_params, variable)
        for variable in task_variables.output:
            add_variable(task_decomposition.output_params, variable)

    def _ensure_variable(
        self,
        decomposition: YDecomposition,
        task_variables: TaskVariables,
        name: str,
        var_type: str = "string",
        initial_value: str = "",
        bucket: Optional[List[YVariable]] = None,
    ) -> YVariable:
        """Return the known variable called ``name`` or declare a new local one.

        A variable already known to the enclosing decomposition is reused and
        recorded in ``bucket`` (defaults to the task locals).
        """
        variable = task_variables.find(name)
        if variable is not None:
            return variable

        variable = decomposition.find_variable(name)
        if variable is not None:
            add_variable(bucket if bucket is not None else task_variables.local, variable)
            return variable

        variable = YVariable(name, var_type, initial_value)
        task_variables.local.append(variable)
        return variable

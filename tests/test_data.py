"""
Tests for the data binder (data objects, properties and assignments)
"""

import pytest

from bpmn2yawl.bpmn.elements import (
    Assignment,
    AssignTime,
    DataObject,
    Property,
    Task,
    associate,
)
from bpmn2yawl.conversion.data import (
    DataBinder,
    TaskVariables,
    add_mapping,
    add_variable,
    variable_query,
)
from bpmn2yawl.conversion.elements import ensure_task_decomposition
from bpmn2yawl.yawl.model import YVariable


@pytest.fixture
def binder(context):
    return DataBinder(context)


class TestHelpers:
    """Query and list helpers"""

    def test_variable_query_format(self):
        """The query copies the variable out of its owner's data"""
        assert variable_query("Net", "amount") == "<amount>{/Net/amount/text()}</amount>"

    def test_add_mapping_skips_same_query(self):
        """Mappings are unique by query text, ignoring case"""
        variable = YVariable("amount")
        mappings = []
        assert add_mapping(mappings, "<amount>{/Net/amount/text()}</amount>", variable)
        assert not add_mapping(mappings, "<AMOUNT>{/NET/amount/text()}</AMOUNT>", variable)
        assert len(mappings) == 1

    def test_add_variable_skips_same_name(self):
        """Variables are unique by name, ignoring case"""
        variables = []
        assert add_variable(variables, YVariable("Amount"))
        assert not add_variable(variables, YVariable("amount", "integer"))
        assert [v.type for v in variables] == ["string"]


class TestDataObjects:
    """Data objects become net variables"""

    def _mapped_task(self, scope, context, activity):
        task = scope.decomposition.create_task(f"y_{activity.id}", activity.id)
        ensure_task_decomposition(context.model, task)
        scope.node_map[activity] = task
        return task

    def test_reader_and_writer_mappings(self, binder, scope, context):
        """Readers get a starting mapping, writers a completed mapping"""
        order = DataObject("order", "Order", data_type="string", value="none")
        writer, reader = Task("write"), Task("read")
        associate(writer, order)
        associate(order, reader)
        ywriter = self._mapped_task(scope, context, writer)
        yreader = self._mapped_task(scope, context, reader)

        variable = binder.map_data_object(scope, order)

        assert variable.name == "Order"
        assert variable.initial_value == "none"
        assert variable in scope.decomposition.local_variables

        assert [m.query for m in yreader.starting_mappings] == [variable_query("Net", "Order")]
        assert yreader.decomposes_to.input_params == [variable]
        assert [m.query for m in ywriter.completed_mappings] == [
            variable_query(ywriter.id, "Order")
        ]
        assert ywriter.decomposes_to.output_params == [variable]

    def test_unconnected_object_is_skipped(self, binder, scope):
        """A data object without associations declares nothing"""
        assert binder.map_data_object(scope, DataObject("d", "Loose")) is None
        assert scope.decomposition.local_variables == []

    def test_object_of_another_decomposition_is_skipped(self, binder, scope):
        """Associations to nodes mapped elsewhere do not bind the object here"""
        data_object = DataObject("d", "Elsewhere")
        associate(data_object, Task("other"))

        assert binder.map_data_object(scope, data_object) is None

    def test_duplicate_name_is_skipped(self, binder, scope, context):
        """A second data object with a known name is ignored"""
        task = Task("t")
        first, second = DataObject("d1", "Order"), DataObject("d2", "Order")
        associate(first, task)
        associate(second, task)
        self._mapped_task(scope, context, task)

        assert binder.map_data_object(scope, first) is not None
        assert binder.map_data_object(scope, second) is None
        assert len(scope.decomposition.local_variables) == 1


class TestActivityData:
    """Properties and assignments"""

    def test_property_is_read_and_written(self, binder, scope):
        """A property becomes a local read on start and written on completion"""
        net = scope.decomposition
        activity = Task("t", properties=[Property("amount", "Integer", "10")])
        task = net.create_task("yt", "T")
        task_variables = TaskVariables()

        binder.map_activity_properties(net, activity, task, task_variables)

        [variable] = task_variables.local
        assert (variable.name, variable.type, variable.initial_value) == ("amount", "integer", "10")
        assert task.starting_mappings[0].query == variable_query("Net", "amount")
        assert task.completed_mappings[0].query == variable_query("yt", "amount")

    def test_null_property_type_is_string(self, binder, scope):
        """Untyped properties default to string"""
        net = scope.decomposition
        activity = Task("t", properties=[Property("note", "null"), Property("memo", "")])
        task_variables = TaskVariables()

        binder.map_activity_properties(net, activity, net.create_task("yt", "T"), task_variables)

        assert [v.type for v in task_variables.local] == ["string", "string"]

    def test_start_assignment_reuses_net_variable(self, binder, scope):
        """A start assignment to a known variable makes it an input parameter"""
        net = scope.decomposition
        existing = YVariable("customer")
        net.local_variables.append(existing)
        activity = Task("t", assignments=[Assignment("customer", assign_time=AssignTime.START)])
        task = net.create_task("yt", "T")
        task_variables = TaskVariables()

        binder.map_activity_assignments(net, activity, task, task_variables)

        assert task_variables.input == [existing]
        assert task_variables.local == []
        assert task.starting_mappings[0].variable is existing

    def test_end_assignment_declares_new_variable(self, binder, scope):
        """An end assignment to an unknown variable declares a new local"""
        net = scope.decomposition
        activity = Task("t", assignments=[Assignment("result", assign_time=AssignTime.END)])
        task = net.create_task("yt", "T")
        task_variables = TaskVariables()

        binder.map_activity_assignments(net, activity, task, task_variables)

        [variable] = task_variables.local
        assert variable.name == "result"
        assert task.completed_mappings[0].query == variable_query("yt", "result")

    def test_bind_exposes_variables_as_parameters(self, binder, scope, model):
        """Locals land on the net and on both sides of the task decomposition"""
        net = scope.decomposition
        task_decomposition = model.create_decomposition("yt")
        local, read, written = YVariable("a"), YVariable("b"), YVariable("c")
        task_variables = TaskVariables(local=[local], input=[read], output=[written])

        binder.bind_task_variables(net, task_variables, task_decomposition)

        assert net.local_variables == [local]
        assert task_decomposition.input_params == [local, read]
        assert task_decomposition.output_params == [local, written]

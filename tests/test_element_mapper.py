"""
Tests for the element mapper (BPMN node -> YAWL node dispatch)
"""

import logging
from datetime import datetime

import pytest

from bpmn2yawl.bpmn.elements import (
    ANDGateway,
    EndErrorEvent,
    EndPlainEvent,
    EndTerminateEvent,
    IntermediateErrorEvent,
    IntermediateMessageEvent,
    IntermediatePlainEvent,
    IntermediateTimerEvent,
    LoopType,
    NodeKind,
    StartPlainEvent,
    SubProcess,
    Task,
    XORDataBasedGateway,
    XOREventBasedGateway,
    connect,
)
from bpmn2yawl.conversion import elements as elements_module
from bpmn2yawl.conversion.elements import ElementMapper
from bpmn2yawl.yawl.model import (
    TimerTrigger,
    XsiType,
    YCondition,
    YInputCondition,
    YOutputCondition,
    YTask,
)


@pytest.fixture
def mapper(builder):
    return builder.mapper


class TestDispatch:
    """Dispatch table"""

    def test_every_node_kind_has_a_handler(self):
        """No node kind falls through the dispatch"""
        assert set(ElementMapper.DISPATCH) == set(NodeKind)

    def test_handlers_exist(self, mapper):
        """Every dispatch entry names a method of the mapper"""
        for handler in ElementMapper.DISPATCH.values():
            assert callable(getattr(mapper, handler))

    def test_mapped_nodes_are_registered(self, mapper, scope):
        """A mapped node is recorded in the scope's node map"""
        task = Task("t", "Check")
        ynode = mapper.map(scope, task)
        assert scope.node_map[task] is ynode

    @pytest.mark.parametrize(
        "gateway", [ANDGateway("g"), XORDataBasedGateway("g")]
    )
    def test_control_gateways_are_deferred(self, mapper, scope, gateway):
        """Control gateways are left to the gateway folder"""
        assert mapper.map(scope, gateway) is None
        assert gateway not in scope.node_map


class TestActivities:
    """Tasks and composite tasks"""

    def test_task_gets_own_decomposition(self, mapper, scope, model):
        """An atomic task decomposes to a web service decomposition named after it"""
        ytask = mapper.map(scope, Task("t", "Check order"))

        assert isinstance(ytask, YTask)
        assert ytask.id.startswith("Node_task_")
        assert ytask.name == "Check order"
        assert ytask.decomposes_to is model.get_decomposition(ytask.id)
        assert ytask.decomposes_to.xsi_type == XsiType.WEB_SERVICE_GATEWAY_FACTS

    def test_unlabelled_task_uses_id(self, mapper, scope):
        """Without label the BPMN id names the task"""
        assert mapper.map(scope, Task("Task_7")).name == "Task_7"

    def test_standard_loop_is_registered(self, mapper, scope, context):
        """Activities with a standard loop are queued for loop rewriting"""
        task = Task("t", loop_type=LoopType.STANDARD, loop_condition="x < 3")
        mapper.map(scope, task)
        assert context.pop_looping_activities(scope.decomposition) == [task]

    def test_subprocess_becomes_composite_task(self, mapper, scope, model):
        """A subprocess decomposes to a net built from its children"""
        subprocess = SubProcess("sp", "Handle claim")
        start = StartPlainEvent("s")
        end = EndPlainEvent("e")
        subprocess.add(start, end)
        connect(start, end)

        ytask = mapper.map(scope, subprocess)

        subnet = ytask.decomposes_to
        assert subnet.xsi_type == XsiType.NET_FACTS
        assert subnet.id.startswith("Node_Handleclaim_")
        assert subnet in model.decompositions
        assert subnet.input_condition is not None
        assert subnet.output_condition is not None

    def test_too_deep_subprocess_is_atomic(self, mapper, scope, monkeypatch, caplog):
        """Past the nesting limit a subprocess is translated as an atomic task"""
        monkeypatch.setattr(elements_module, "MAX_NESTING_DEPTH", 0)
        subprocess = SubProcess("sp", "Deep")
        subprocess.add(StartPlainEvent("s"))

        with caplog.at_level(logging.WARNING):
            ytask = mapper.map(scope, subprocess)

        assert ytask.decomposes_to.xsi_type == XsiType.WEB_SERVICE_GATEWAY_FACTS
        assert "nested deeper" in caplog.text


class TestEvents:
    """Start, end and intermediate events"""

    def test_start_and_end_events(self, mapper, scope):
        """Start maps to the input condition, plain end to the output condition"""
        assert isinstance(mapper.map(scope, StartPlainEvent("s")), YInputCondition)
        assert isinstance(mapper.map(scope, EndPlainEvent("e")), YOutputCondition)

    def test_two_end_events_share_the_output_condition(self, mapper, scope):
        """A decomposition has one output condition whatever the number of end events"""
        first = mapper.map(scope, EndPlainEvent("e1"))
        second = mapper.map(scope, EndPlainEvent("e2"))
        assert first is second

    def test_end_error_event(self, mapper, scope):
        """End error events become tasks recognizable by their id"""
        ytask = mapper.map(scope, EndErrorEvent("err"))
        assert isinstance(ytask, YTask)
        assert "ErrorEvent" in ytask.id
        assert ytask.name == "TaskMappedFromErrorEvent"

    def test_end_terminate_event(self, mapper, scope):
        """End terminate events become cancellation tasks"""
        ytask = mapper.map(scope, EndTerminateEvent("term"))
        assert ytask.id.startswith("Node_endTerminate_")
        assert ytask.name == "CancellationTask"

    def test_message_event_after_event_based_gateway(self, mapper, scope):
        """A message event following an event-based gateway becomes a message task"""
        gateway = XOREventBasedGateway("g")
        message = IntermediateMessageEvent("m")
        connect(gateway, message)

        ytask = mapper.map(scope, message)

        assert ytask.id.startswith("Node_msg_")
        assert ytask.decomposes_to is not None

    def test_error_event_after_gateway(self, mapper, scope):
        """An intermediate event following any gateway becomes a task"""
        gateway = ANDGateway("g")
        event = IntermediateErrorEvent("e")
        connect(gateway, event)

        assert mapper.map(scope, event).id.startswith("Node_intermediate_")

    def test_plain_event_before_gateway(self, mapper, scope):
        """An intermediate plain event in front of a gateway becomes a condition"""
        event = IntermediatePlainEvent("p")
        connect(event, XOREventBasedGateway("g"))

        ycondition = mapper.map(scope, event)

        assert isinstance(ycondition, YCondition)
        assert ycondition.id.startswith("Node_plain_")

    def test_event_between_tasks_has_no_counterpart(self, mapper, scope, caplog):
        """An intermediate event between two tasks is dropped with a warning"""
        event = IntermediatePlainEvent("p")
        connect(Task("a"), event)
        connect(event, Task("b"))

        with caplog.at_level(logging.WARNING):
            assert mapper.map(scope, event) is None
        assert "no YAWL counterpart" in caplog.text

    def test_event_based_gateway_reuses_predecessor_condition(self, mapper, scope):
        """The condition of a preceding plain event is shared by the gateway"""
        event = IntermediatePlainEvent("p")
        gateway = XOREventBasedGateway("g")
        connect(event, gateway)

        ycondition = mapper.map(scope, event)
        assert mapper.map(scope, gateway) is ycondition

    def test_event_based_gateway_after_task(self, mapper, scope):
        """After a task the event-based gateway gets a condition of its own"""
        task = Task("t")
        gateway = XOREventBasedGateway("g")
        connect(task, gateway)
        mapper.map(scope, task)

        ycondition = mapper.map(scope, gateway)

        assert isinstance(ycondition, YCondition)
        assert ycondition.id.startswith("Node_EXorGW_")


class TestTimerEvents:
    """Timer task mapping"""

    def test_free_timer(self, mapper, scope):
        """A free-standing timer starts when enabled and reads its value from a net variable"""
        timer = IntermediateTimerEvent("t", time_date="24/12/09")

        ytask = mapper.map(scope, timer)

        assert ytask.id.startswith("Node_timer_")
        assert ytask.timer.trigger == TimerTrigger.ON_ENABLED
        assert ytask.timer.time_date == datetime(2009, 12, 24)

        name = f"{ytask.id}_timer"
        assert ytask.timer.net_param == name
        variable = scope.decomposition.find_variable(name)
        assert variable is not None
        assert variable.type == "string"
        assert variable in scope.decomposition.local_variables
        assert ytask.starting_mappings[0].query == f"<{name}>{{/Net/{name}/text()}}</{name}>"
        assert ytask.decomposes_to.input_params[0].name == name

    def test_attached_timer_triggers_on_executing(self, mapper, scope):
        """A boundary timer starts counting with its host"""
        timer = IntermediateTimerEvent("t", time_cycle="PT5M")
        ytask = mapper.map_timer_event(scope, timer, attached=True)

        assert ytask.timer.trigger == TimerTrigger.ON_EXECUTING
        assert ytask.timer.time_cycle == "PT5M"
        assert ytask.timer.time_date is None

    def test_unreadable_date_is_logged(self, mapper, scope, caplog):
        """A malformed date leaves the timer without date instead of failing"""
        timer = IntermediateTimerEvent("t", time_date="next tuesday")

        with caplog.at_level(logging.WARNING):
            ytask = mapper.map(scope, timer)

        assert ytask.timer is not None
        assert ytask.timer.time_date is None
        assert "unreadable date" in caplog.text

"""
Tests for the exception compiler (events attached to activity boundaries)
"""

import logging

from bpmn2yawl.bpmn.elements import (
    ANDGateway,
    EndErrorEvent,
    EndPlainEvent,
    IntermediateErrorEvent,
    IntermediateMessageEvent,
    IntermediateTimerEvent,
    StartPlainEvent,
    SubProcess,
    Task,
    attach,
    connect,
)
from bpmn2yawl.yawl.model import SplitJoinType, TimerTrigger


def _task_named(decomposition, name):
    return next(task for task in decomposition.tasks if task.name == name)


def _error_diagram(process):
    """start -> Claim (subprocess ending in an error) -> end, error -> Escalate -> end"""
    start, end = StartPlainEvent("start"), EndPlainEvent("end")
    claim = SubProcess("claim", "Claim")
    inner_start = StartPlainEvent("inner_start")
    inner_task = Task("inner_task", "Assess")
    inner_error = EndErrorEvent("inner_error")
    claim.add(inner_start, inner_task, inner_error)
    connect(inner_start, inner_task)
    connect(inner_task, inner_error)

    error = IntermediateErrorEvent("error")
    handler = Task("handler", "Escalate")
    process.add(start, claim, end, error, handler)
    connect(start, claim)
    connect(claim, end)
    attach(error, claim)
    connect(error, handler)
    connect(handler, end)


class TestErrorEvents:
    """Attached error events"""

    def test_error_edge_is_guarded_by_flag(self, converter, diagram, process):
        """The host gets an edge to the handler guarded by the exception flag"""
        _error_diagram(process)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "Claim")
        handler = _task_named(root, "Escalate")
        flag = f"{host.id}_{host.id}_exception"

        error_edge = next(e for e in host.outgoing_edges if e.target is handler)
        assert error_edge.ordering == 1
        assert error_edge.predicate == f"/{root.id}/{flag}/text()"
        assert not error_edge.is_default

        normal_edge = next(e for e in host.outgoing_edges if e.target is root.output_condition)
        assert normal_edge.ordering == 2
        assert normal_edge.is_default
        assert host.split_type == SplitJoinType.XOR

    def test_flag_variable_and_completion_mapping(self, converter, diagram, process):
        """The flag is a boolean net variable copied from the host on completion"""
        _error_diagram(process)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "Claim")
        flag_name = f"{host.id}_{host.id}_exception"
        flag = root.find_variable(flag_name)
        assert flag.type == "boolean"
        assert flag.initial_value == "false"

        inner_name = f"_{host.id}_exception"
        subnet_id = host.decomposes_to.id
        assert [(m.query, m.variable) for m in host.completed_mappings] == [
            (f"<{flag_name}>{{/{subnet_id}/{inner_name}/text()}}</{flag_name}>", flag)
        ]

    def test_completion_mapping_reads_the_subnet(self, converter, diagram, process):
        """The flag is copied out of the subnet that declares it as output"""
        _error_diagram(process)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "Claim")
        subnet = host.decomposes_to
        assert subnet.id != host.id
        (mapping,) = host.completed_mappings
        query = mapping.query.split("{", 1)[1]
        assert query.split("/")[1] == subnet.id
        inner_name = query.split("/")[2]
        assert inner_name in [v.name for v in subnet.output_params]

    def test_error_end_event_sets_flag(self, converter, diagram, process):
        """The error end event inside the host writes true into the flag"""
        _error_diagram(process)

        model = converter.translate_model(diagram, 0)
        host = _task_named(model.root_net, "Claim")
        subnet = host.decomposes_to
        inner_name = f"_{host.id}_exception"

        assert subnet.find_variable(inner_name) in subnet.local_variables
        assert [v.name for v in subnet.output_params] == [inner_name]

        error_task = _task_named(subnet, "TaskMappedFromErrorEvent")
        assert [m.query for m in error_task.completed_mappings] == [
            f"<{inner_name}>true</{inner_name}>"
        ]
        assert error_task.decomposes_to is model.get_decomposition(error_task.id)

    def test_split_moves_to_new_task(self, converter, diagram, process):
        """A host that splits keeps its successors on a factored split task"""
        start, end = StartPlainEvent("start"), EndPlainEvent("end")
        a, b, c = Task("a", "A"), Task("b", "B"), Task("c", "C")
        gateway = ANDGateway("g")
        error = IntermediateErrorEvent("error")
        handler = Task("handler", "Handle")
        process.add(start, a, gateway, b, c, end, error, handler)
        connect(start, a)
        connect(a, gateway)
        connect(gateway, b)
        connect(gateway, c)
        connect(b, end)
        connect(c, end)
        attach(error, a)
        connect(error, handler)
        connect(handler, end)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "A")
        split = _task_named(root, "newSplitTask")
        assert host.split_type == SplitJoinType.XOR
        assert split.split_type == SplitJoinType.AND
        assert {e.target.name for e in split.outgoing_edges} == {"B", "C"}
        assert {e.target.name for e in host.outgoing_edges} == {"newSplitTask", "Handle"}

    def test_message_event_only_forces_xor(self, converter, diagram, process):
        """Attached message events change the split but add no edge"""
        start, end = StartPlainEvent("start"), EndPlainEvent("end")
        a = Task("a", "A")
        message = IntermediateMessageEvent("m")
        process.add(start, a, end, message)
        connect(start, a)
        connect(a, end)
        attach(message, a)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "A")
        assert host.split_type == SplitJoinType.XOR
        assert len(host.outgoing_edges) == 1


class TestTimerEvents:
    """Attached timer events"""

    def _timer_diagram(self, process, timers=1):
        start, end = StartPlainEvent("start"), EndPlainEvent("end")
        work = Task("work", "Work")
        process.add(start, work, end)
        connect(start, work)
        connect(work, end)
        for index in range(timers):
            timer = IntermediateTimerEvent(f"timer{index}", time_cycle="PT1H")
            reminder = Task(f"reminder{index}", f"Remind {index}")
            process.add(timer, reminder)
            attach(timer, work)
            connect(timer, reminder)
            connect(reminder, end)

    def test_timer_and_host_cancel_each_other(self, converter, diagram, process):
        """The timer task and the host are in each other's cancellation set"""
        self._timer_diagram(process)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "Work")
        timer = _task_named(root, "TimerTask")
        assert timer in host.cancellation_set
        assert host in timer.cancellation_set
        assert timer.timer.trigger == TimerTrigger.ON_EXECUTING
        assert [e.target.name for e in timer.outgoing_edges] == ["Remind 0"]

    def test_timer_starts_with_host(self, converter, diagram, process):
        """Host and timer are enabled together by a new AND split after the input condition"""
        self._timer_diagram(process)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "Work")
        timer = _task_named(root, "TimerTask")
        predecessor = host.incoming_edges[0].source
        assert predecessor is not root.input_condition
        assert predecessor.split_type == SplitJoinType.AND
        assert {e.target for e in predecessor.outgoing_edges} == {host, timer}
        assert predecessor.incoming_edges[0].source is root.input_condition

        orderings = [e.ordering for e in predecessor.outgoing_edges]
        assert len(set(orderings)) == len(orderings)

    def test_timers_cancel_each_other(self, converter, diagram, process):
        """Several timers on one host are mutually exclusive"""
        self._timer_diagram(process, timers=2)

        root = converter.translate_model(diagram, 0).root_net

        host = _task_named(root, "Work")
        timers = [t for t in root.tasks if t.name == "TimerTask"]
        assert len(timers) == 2
        first, second = timers
        assert second in first.cancellation_set
        assert first in second.cancellation_set
        assert set(host.cancellation_set) == {first, second}

        predecessor = host.incoming_edges[0].source
        assert {e.target for e in predecessor.outgoing_edges} == {host, first, second}

    def test_single_predecessor_task_becomes_and_split(self, converter, diagram, process):
        """A predecessor task with one successor is reused as the AND split"""
        start, end = StartPlainEvent("start"), EndPlainEvent("end")
        before, work = Task("before", "Before"), Task("work", "Work")
        timer = IntermediateTimerEvent("timer", time_cycle="PT1H")
        process.add(start, before, work, end, timer)
        connect(start, before)
        connect(before, work)
        connect(work, end)
        attach(timer, work)
        connect(timer, end)

        root = converter.translate_model(diagram, 0).root_net

        before_task = _task_named(root, "Before")
        timer_task = _task_named(root, "TimerTask")
        assert before_task.split_type == SplitJoinType.AND
        assert {e.target.name for e in before_task.outgoing_edges} == {"Work", "TimerTask"}
        assert timer_task.outgoing_edges[0].target is root.output_condition

    def test_host_without_incoming_edge(self, converter, diagram, process, caplog):
        """A host nobody enables cannot start its timers"""
        end = EndPlainEvent("end")
        work = Task("work", "Work")
        timer = IntermediateTimerEvent("timer")
        process.add(work, end, timer)
        connect(work, end)
        attach(timer, work)
        connect(timer, end)

        with caplog.at_level(logging.WARNING):
            root = converter.translate_model(diagram, 0).root_net

        timer_task = _task_named(root, "TimerTask")
        assert timer_task.incoming_edges == []
        assert "cannot be enabled" in caplog.text

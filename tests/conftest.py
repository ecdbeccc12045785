"""
Shared fixtures for the bpmn2yawl test suite
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bpmn2yawl.bpmn.elements import (  # noqa: E402
    BPMNDiagram,
    EndPlainEvent,
    Process,
    StartPlainEvent,
    Task,
    connect,
)
from bpmn2yawl.conversion.context import DecompositionScope, TranslationContext  # noqa: E402
from bpmn2yawl.conversion.converter import BPMN2YAWLConverter  # noqa: E402
from bpmn2yawl.conversion.decomposition import DecompositionBuilder  # noqa: E402
from bpmn2yawl.yawl.model import YModel  # noqa: E402


@pytest.fixture
def diagram():
    """A diagram with one empty pool"""
    return BPMNDiagram(processes=[Process("Process_1", "Pool")])


@pytest.fixture
def process(diagram):
    return diagram.processes[0]


@pytest.fixture
def simple_diagram(diagram, process):
    """start -> Review -> end"""
    start = StartPlainEvent("start")
    task = Task("review", "Review")
    end = EndPlainEvent("end")
    process.add(start, task, end)
    connect(start, task)
    connect(task, end)
    return diagram


@pytest.fixture
def model():
    return YModel("mymodel0")


@pytest.fixture
def context(diagram, model):
    return TranslationContext(diagram, model)


@pytest.fixture
def builder(context):
    return DecompositionBuilder(context)


@pytest.fixture
def scope(model):
    """Scope over a fresh net decomposition"""
    return DecompositionScope(model.create_decomposition("Net"))


@pytest.fixture
def converter():
    return BPMN2YAWLConverter()

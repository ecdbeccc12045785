# YAWL module
# Exports the YAWL net model, resourcing types and the XML writer

from .model import (
    SplitJoinType,
    TimerTrigger,
    XsiType,
    YCondition,
    YDecomposition,
    YEdge,
    YInputCondition,
    YModel,
    YNode,
    YOutputCondition,
    YTask,
    YTimer,
    YVariable,
    YVariableMapping,
)
from .resourcing import DistributionSet, InitiatorType, ResourcingType, YResourcing
from .writer import YAWLWriter

__all__ = [
    'SplitJoinType',
    'TimerTrigger',
    'XsiType',
    'YCondition',
    'YDecomposition',
    'YEdge',
    'YInputCondition',
    'YModel',
    'YNode',
    'YOutputCondition',
    'YTask',
    'YTimer',
    'YVariable',
    'YVariableMapping',
    'DistributionSet',
    'InitiatorType',
    'ResourcingType',
    'YResourcing',
    'YAWLWriter'
]

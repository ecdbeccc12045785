# bpmn2yawl - BPMN to YAWL translator
# Core package initialization

from .bpmn import BPMNDiagram, RDFDiagramLoader, load_diagram
from .conversion import BPMN2YAWLConverter, TranslationContext
from .yawl import ResourcingType, YAWLWriter, YModel

__all__ = [
    # Source model
    'BPMNDiagram',
    'RDFDiagramLoader',
    'load_diagram',
    # Translation
    'BPMN2YAWLConverter',
    'TranslationContext',
    # Target model
    'ResourcingType',
    'YAWLWriter',
    'YModel'
]

__version__ = "1.0.0"

# Conversion module
# Exports the BPMN to YAWL translator and its rewriting passes

from .context import DecompositionScope, TranslationContext
from .converter import BPMN2YAWLConverter
from .decomposition import DecompositionBuilder

__all__ = [
    'BPMN2YAWLConverter',
    'DecompositionBuilder',
    'DecompositionScope',
    'TranslationContext'
]

"""
BPMN to YAWL Converter

Entry point of the translator: selects one pool of a BPMN diagram, builds
the YAWL model for it and renders the model as a YAWL specification.

Usage:
    converter = BPMN2YAWLConverter()
    xml = converter.translate(diagram, 0, {"lane-1": ResourcingType("clerk")})
"""

import logging
from typing import Mapping, Optional

from bpmn2yawl.bpmn.elements import BPMNDiagram
from bpmn2yawl.config import MODEL_ID_PREFIX
from bpmn2yawl.conversion.context import TranslationContext
from bpmn2yawl.conversion.decomposition import DecompositionBuilder
from bpmn2yawl.yawl.model import YModel
from bpmn2yawl.yawl.resourcing import ResourcingType
from bpmn2yawl.yawl.writer import YAWLWriter

logger = logging.getLogger(__name__)


class BPMN2YAWLConverter:
    """
    Translates BPMN diagrams to YAWL.

    The converter itself is stateless; every call builds its own translation
    context, so generated ids restart at zero and calls never share state.
    """

    def __init__(self, writer: Optional[YAWLWriter] = None):
        self.writer = writer or YAWLWriter()

    def translate(
        self,
        diagram: BPMNDiagram,
        pool_index: int,
        resourcing_map: Optional[Mapping[str, ResourcingType]] = None,
    ) -> str:
        """
        Translate one pool of a diagram to a YAWL specification document.

        Args:
            diagram: The parsed BPMN diagram
            pool_index: Index of the pool (process) to translate
            resourcing_map: Role per lane id, used for system-initiated tasks

        Returns:
            The YAWL specification as XML text

        Raises:
            ValueError: If the diagram has no pool at ``pool_index``
        """
        return self.writer.write(self.translate_model(diagram, pool_index, resourcing_map))

    def translate_model(
        self,
        diagram: BPMNDiagram,
        pool_index: int,
        resourcing_map: Optional[Mapping[str, ResourcingType]] = None,
    ) -> YModel:
        """Same as :meth:`translate` but returns the model instead of rendering it."""
        if pool_index < 0 or pool_index >= len(diagram.processes):
            raise ValueError(
                f"Pool index {pool_index} out of range, diagram has {len(diagram.processes)} pool(s)"
            )

        pool = diagram.processes[pool_index]
        model = YModel(f"{MODEL_ID_PREFIX}{pool_index}", diagram.data_type_definition)
        context = TranslationContext(diagram, model, resourcing_map)

        logger.info(f"Translating pool {pool.id} ({pool.label or 'unnamed'}) to {model.id}")
        DecompositionBuilder(context).build(pool)
        logger.info(
            f"Translation of {pool.id} done: {len(model.decompositions)} decompositions, "
            f"{context.node_count} generated ids"
        )
        return model

"""
YAWL Writer
Renders a YModel as a YAWL 2.0 specification document

This module provides the serialization step of the translator:
- write(): Converts a YModel to a YAWL specificationSet XML string

Query strings are kept unescaped in the model; ElementTree escapes them
when the document is serialized.
"""

import calendar
import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from bpmn2yawl.config import (
    XSD_NAMESPACE,
    XSI_NAMESPACE,
    YAWL_NAMESPACE,
    YAWL_SCHEMA_LOCATION,
    YAWL_SCHEMA_VERSION,
)
from bpmn2yawl.yawl.model import (
    SplitJoinType,
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
from bpmn2yawl.yawl.resourcing import DistributionSet, YResourcing

logger = logging.getLogger(__name__)

# Variable types declared by XML Schema itself
XSD_TYPES = frozenset(
    {
        "anyuri",
        "boolean",
        "byte",
        "date",
        "datetime",
        "decimal",
        "double",
        "duration",
        "float",
        "int",
        "integer",
        "long",
        "short",
        "string",
        "time",
    }
)

# Replaced by the data type definition after serialization
_SCHEMA_PLACEHOLDER = "@@DATA_TYPE_DEFINITION@@"


class YAWLWriter:
    """
    Serializes YAWL models to XML.

    Supports:
    - Net and web service gateway decompositions with their variables
    - Input/output conditions, conditions and tasks with ordered flows
    - Split/join codes, cancellation sets, start/completion mappings
    - Timers, resourcing and multiple-instance parameters
    """

    def write(self, model: YModel) -> str:
        """
        Convert a model to a YAWL specification.

        Args:
            model: The model to render

        Returns:
            YAWL 2.0 XML as string
        """
        root = ET.Element("specificationSet")
        root.set("xmlns", YAWL_NAMESPACE)
        root.set("xmlns:xsi", XSI_NAMESPACE)
        root.set("version", YAWL_SCHEMA_VERSION)
        root.set("xsi:schemaLocation", YAWL_SCHEMA_LOCATION)

        specification = ET.SubElement(root, "specification")
        specification.set("uri", model.id)
        self._add_metadata(specification, model)

        schema = ET.SubElement(specification, "xs:schema")
        schema.set("xmlns:xs", XSD_NAMESPACE)
        definition = self._data_type_definition(model)
        if definition:
            schema.text = _SCHEMA_PLACEHOLDER

        for decomposition in self._ordered_decompositions(model):
            self._add_decomposition(specification, decomposition)

        xml = self._serialize_xml(root)
        if definition:
            xml = xml.replace(_SCHEMA_PLACEHOLDER, definition)
        return xml

    # ==================== Specification ====================

    def _add_metadata(self, specification: ET.Element, model: YModel):
        metadata = ET.SubElement(specification, "metaData")
        ET.SubElement(metadata, "version").text = "0.1"
        ET.SubElement(metadata, "persistent").text = "false"
        ET.SubElement(metadata, "identifier").text = f"UID_{model.id}"

    def _data_type_definition(self, model: YModel) -> str:
        """Return the definition if it is well-formed schema content, else ''."""
        definition = (model.data_type_definition or "").strip()
        if not definition:
            return ""
        try:
            ET.fromstring(f'<xs:schema xmlns:xs="{XSD_NAMESPACE}">{definition}</xs:schema>')
        except ET.ParseError as e:
            logger.warning(f"Data type definition of {model.id} ignored, not well-formed: {e}")
            return ""
        return definition

    def _ordered_decompositions(self, model: YModel) -> List[YDecomposition]:
        roots = [d for d in model.decompositions if d.is_root_net]
        return roots + [d for d in model.decompositions if not d.is_root_net]

    # ==================== Decompositions ====================

    def _add_decomposition(self, parent: ET.Element, decomposition: YDecomposition):
        elem = ET.SubElement(parent, "decomposition")
        elem.set("id", decomposition.id)
        if decomposition.is_root_net:
            elem.set("isRootNet", "true")
        elem.set("xsi:type", decomposition.xsi_type.value)

        self._add_variables(elem, "inputParam", decomposition.input_params)
        self._add_variables(elem, "outputParam", decomposition.output_params)

        if decomposition.xsi_type != XsiType.NET_FACTS:
            return

        self._add_variables(elem, "localVariable", decomposition.local_variables, True)

        controls = ET.SubElement(elem, "processControlElements")
        for node in self._ordered_nodes(decomposition):
            self._add_node(controls, node)

    def _add_variables(
        self,
        parent: ET.Element,
        tag: str,
        variables: List[YVariable],
        with_initial_value: bool = False,
    ):
        for index, variable in enumerate(variables):
            elem = ET.SubElement(parent, tag)
            ET.SubElement(elem, "index").text = str(index)
            ET.SubElement(elem, "name").text = variable.name
            ET.SubElement(elem, "type").text = variable.type
            if variable.type.lower() in XSD_TYPES:
                ET.SubElement(elem, "namespace").text = XSD_NAMESPACE
            if with_initial_value and variable.initial_value:
                ET.SubElement(elem, "initialValue").text = variable.initial_value

    def _ordered_nodes(self, decomposition: YDecomposition) -> List[YNode]:
        """Input condition first, output condition last, the rest in creation order."""
        middle = [
            n
            for n in decomposition.nodes
            if not isinstance(n, (YInputCondition, YOutputCondition))
        ]
        nodes = []
        if decomposition.input_condition is not None:
            nodes.append(decomposition.input_condition)
        nodes.extend(middle)
        if decomposition.output_condition is not None:
            nodes.append(decomposition.output_condition)
        return nodes

    # ==================== Nodes ====================

    def _add_node(self, parent: ET.Element, node: YNode):
        if isinstance(node, YInputCondition):
            tag = "inputCondition"
        elif isinstance(node, YOutputCondition):
            tag = "outputCondition"
        elif isinstance(node, YCondition):
            tag = "condition"
        else:
            tag = "task"

        elem = ET.SubElement(parent, tag)
        elem.set("id", node.id)
        if isinstance(node, YTask) and node.is_multiple_task and node.xsi_type:
            elem.set("xsi:type", node.xsi_type)
        if node.name:
            ET.SubElement(elem, "name").text = node.name

        for edge in sorted(node.outgoing_edges, key=lambda e: (e.ordering == 0, e.ordering)):
            self._add_flow(elem, edge)

        if isinstance(node, YTask):
            self._add_task_details(elem, node)

    def _add_flow(self, parent: ET.Element, edge: YEdge):
        flow = ET.SubElement(parent, "flowsInto")
        ET.SubElement(flow, "nextElementRef").set("id", edge.target.id)
        if edge.ordering > 0 or edge.predicate:
            predicate = ET.SubElement(flow, "predicate")
            if edge.ordering > 0:
                predicate.set("ordering", str(edge.ordering))
            predicate.text = edge.predicate or "true()"
        if edge.is_default:
            ET.SubElement(flow, "isDefaultFlow")

    def _add_task_details(self, elem: ET.Element, task: YTask):
        ET.SubElement(elem, "join").set("code", self._code(task.join_type))
        ET.SubElement(elem, "split").set("code", self._code(task.split_type))

        for node in task.cancellation_set:
            ET.SubElement(elem, "removesTokens").set("id", node.id)

        self._add_mappings(elem, "startingMappings", task.starting_mappings)
        self._add_mappings(elem, "completedMappings", task.completed_mappings)

        if task.timer is not None:
            self._add_timer(elem, task.timer)
        if task.resourcing is not None:
            self._add_resourcing(elem, task.resourcing)
        if task.decomposes_to is not None:
            ET.SubElement(elem, "decomposesTo").set("id", task.decomposes_to.id)
        if task.is_multiple_task and task.mi_param is not None:
            self._add_multi_instance(elem, task)

    @staticmethod
    def _code(split_join: SplitJoinType) -> str:
        # YAWL has no "none" decorator; a single flow behaves the same under XOR
        if split_join == SplitJoinType.NONE:
            return SplitJoinType.XOR.value
        return split_join.value

    def _add_mappings(self, parent: ET.Element, tag: str, mappings: List[YVariableMapping]):
        if not mappings:
            return
        elem = ET.SubElement(parent, tag)
        for mapping in mappings:
            entry = ET.SubElement(elem, "mapping")
            ET.SubElement(entry, "expression").set("query", mapping.query)
            ET.SubElement(entry, "mapsTo").text = mapping.variable.name

    def _add_timer(self, parent: ET.Element, timer: YTimer):
        elem = ET.SubElement(parent, "timer")
        if timer.time_date is not None:
            ET.SubElement(elem, "trigger").text = timer.trigger.value
            expiry = calendar.timegm(timer.time_date.timetuple()) * 1000
            ET.SubElement(elem, "expiry").text = str(expiry)
        elif timer.time_cycle:
            ET.SubElement(elem, "trigger").text = timer.trigger.value
            ET.SubElement(elem, "duration").text = timer.time_cycle
        else:
            ET.SubElement(elem, "netparam").text = timer.net_param

    def _add_resourcing(self, parent: ET.Element, resourcing: YResourcing):
        elem = ET.SubElement(parent, "resourcing")
        offer = ET.SubElement(elem, "offer")
        offer.set("initiator", resourcing.offer.value)
        self._add_distribution_set(offer, resourcing.offer_distribution_set)

        allocate = ET.SubElement(elem, "allocate")
        allocate.set("initiator", resourcing.allocate.value)
        self._add_distribution_set(allocate, resourcing.allocate_distribution_set)

        ET.SubElement(elem, "start").set("initiator", resourcing.start.value)

    def _add_distribution_set(
        self, parent: ET.Element, distribution_set: Optional[DistributionSet]
    ):
        if distribution_set is None:
            return
        initial = ET.SubElement(ET.SubElement(parent, "distributionSet"), "initialSet")
        for resource in distribution_set.initial_set:
            ET.SubElement(initial, resource.kind).text = resource.id

    def _add_multi_instance(self, parent: ET.Element, task: YTask):
        param = task.mi_param
        ET.SubElement(parent, "minimum").text = str(param.minimum)
        ET.SubElement(parent, "maximum").text = str(param.maximum)
        ET.SubElement(parent, "threshold").text = str(param.threshold)
        ET.SubElement(parent, "creationMode").set("code", param.creation_mode.value)

        if param.mi_data_input is not None:
            data_input = ET.SubElement(parent, "miDataInput")
            ET.SubElement(data_input, "expression").set("query", param.mi_data_input.expression)
            ET.SubElement(data_input, "splittingExpression").set(
                "query", param.mi_data_input.splitting_expression
            )
            ET.SubElement(data_input, "formalInputParam").text = (
                param.mi_data_input.formal_input_param.name
            )

        if param.mi_data_output is not None:
            data_output = ET.SubElement(parent, "miDataOutput")
            ET.SubElement(data_output, "formalOutputExpression").set(
                "query", param.mi_data_output.formal_output_expression
            )
            ET.SubElement(data_output, "outputJoiningExpression").set(
                "query", param.mi_data_output.output_joining_expression
            )
            ET.SubElement(data_output, "resultAppliedToLocalVariable").text = (
                param.mi_data_output.result_applied_to_local_variable.name
            )

    def _serialize_xml(self, root: ET.Element) -> str:
        """Serialize XML element to string with an XML declaration"""
        xml_declaration = '<?xml version="1.0" encoding="UTF-8"?>\n'
        ET.indent(root)
        return xml_declaration + ET.tostring(root, encoding="unicode")

# bpmn2yawl Configuration Module
# This file contains configuration settings for the BPMN to YAWL translator

import os

# Identifier of the root net decomposition
ROOT_NET_ID = "BPMNtoYAWL_Net"

# The model id is this prefix followed by the translated pool index
MODEL_ID_PREFIX = "mymodel"

# Generated node identifiers look like Node_<infix>_<counter>
NODE_ID_PREFIX = "Node"
DEFAULT_ID_INFIX = "gw"

# Literal timer dates are written day/month/2-digit-year
TIMER_DATE_FORMAT = "%d/%m/%y"

# The YAWL engine reads this number as "infinite"
UNBOUNDED = 2147483647

# Subprocesses nested deeper than this are translated as atomic tasks
MAX_NESTING_DEPTH = int(os.environ.get("BPMN2YAWL_MAX_NESTING_DEPTH", "64"))

# YAWL specification XML
YAWL_NAMESPACE = "http://www.yawlfoundation.org/yawlschema"
YAWL_SCHEMA_LOCATION = (
    "http://www.yawlfoundation.org/yawlschema "
    "http://www.yawlfoundation.org/yawlschema/YAWL_Schema2.0.xsd"
)
YAWL_SCHEMA_VERSION = "2.0"
XSD_NAMESPACE = "http://www.w3.org/2001/XMLSchema"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

# RDF vocabulary of BPMN models read by the loader
BPMN_NAMESPACE = "http://dkm.fbk.eu/index.php/BPMN2_Ontology#"

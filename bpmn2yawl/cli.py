#!/usr/bin/env python3
"""
bpmn2yawl command line
Translates one pool of a BPMN model stored as RDF to a YAWL specification

Usage:
    bpmn2yawl process.ttl                       # Pool 0 to stdout
    bpmn2yawl process.ttl -p 1 -o process.yawl  # Pool 1 to a file
    bpmn2yawl process.ttl -r roles.json         # Lane roles for system-initiated tasks
"""

import argparse
import json
import logging
import sys
from typing import Dict

from bpmn2yawl.bpmn.rdf_loader import load_diagram
from bpmn2yawl.conversion.converter import BPMN2YAWLConverter
from bpmn2yawl.yawl.resourcing import ResourcingType


def load_resourcing_map(path: str) -> Dict[str, ResourcingType]:
    """
    Read the lane -> role map from a JSON object.

    Each value is either a role id or an object with ``id`` and optional
    ``name`` and ``kind`` ("role" or "participant").
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Resourcing file {path} must hold a JSON object")

    resourcing_map = {}
    for lane_id, value in data.items():
        if isinstance(value, str):
            resourcing_map[lane_id] = ResourcingType(value, value)
        elif isinstance(value, dict) and value.get("id"):
            resourcing_map[lane_id] = ResourcingType(
                value["id"], value.get("name", value["id"]), value.get("kind", "role")
            )
        else:
            raise ValueError(f"Invalid resourcing entry for lane {lane_id}: {value!r}")
    return resourcing_map


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Translate a BPMN model (RDF) to a YAWL specification"
    )
    parser.add_argument("input_file", help="Input RDF file describing the BPMN model")
    parser.add_argument(
        "-f", "--format", default="turtle", help="RDF serialization of the input (default: turtle)"
    )
    parser.add_argument(
        "-p", "--pool", type=int, default=0, help="Index of the pool to translate (default: 0)"
    )
    parser.add_argument("-r", "--resourcing", help="JSON file mapping lane ids to roles")
    parser.add_argument("-o", "--output", help="Output YAWL file (default: stdout)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        diagram = load_diagram(args.input_file, format=args.format)
        resourcing_map = load_resourcing_map(args.resourcing) if args.resourcing else {}
        yawl_output = BPMN2YAWLConverter().translate(diagram, args.pool, resourcing_map)

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(yawl_output)
            print(f"YAWL output written to {args.output}")
        else:
            print(yawl_output)

    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: invalid input: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

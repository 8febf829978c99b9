#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Load the JSON Schema specification of the topology input file
"""

import json
from importlib.resources import files

import jsonschema

from ecs_topology.common.logging import LOG

SCHEMA_FILE = "topology.spec.json"


def load_schema(spec_file: str = SCHEMA_FILE) -> dict:
    with files("ecs_topology.specs").joinpath(spec_file).open() as spec_fd:
        return json.loads(spec_fd.read())


TOPOLOGY_SCHEMA = load_schema()


def validate_input(content: dict, source: str = None) -> None:
    """
    Validates the topology input definition against the schema.

    :raises jsonschema.exceptions.ValidationError: if the content is not conform
    """
    try:
        jsonschema.validate(content, TOPOLOGY_SCHEMA)
    except jsonschema.exceptions.ValidationError as error:
        LOG.error(
            f"{source or 'input'} - Definition is not conform to schema at"
            f" {'/'.join(str(part) for part in error.absolute_path) or '/'}: {error.message}"
        )
        raise

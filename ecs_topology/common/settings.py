#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the TopologySettings class, which holds the execution settings and the topology input.
"""

from __future__ import annotations

from os import path

import yaml

try:
    from yaml import CSafeLoader as Loader
except ImportError:
    from yaml import SafeLoader as Loader

from compose_x_common.compose_x_common import keyisset, keypresent

from ecs_topology.common.logging import LOG
from ecs_topology.descriptors import ServiceDescriptor
from ecs_topology.elbv2.elbv2_routing import ListenerConfig
from ecs_topology.resolver import DNS_ZONE, resolve
from ecs_topology.route53.route53_records import (
    DEFAULT_COMMENT,
    DEFAULT_RECORD_NAME,
    DEFAULT_TTL,
)
from ecs_topology.specs import validate_input
from ecs_topology.vpc.vpc_network import NetworkConfig

DEFAULT_CLUSTER_NAME = "Services"


class DnsConfig:
    """
    DNS settings of the topology: the zone handle and the alias record to create in it
    """

    def __init__(self, zone, record_name=None, ttl=None, comment=None):
        self.zone = zone
        self.record_name = record_name if record_name is not None else DEFAULT_RECORD_NAME
        self.ttl = ttl if ttl is not None else DEFAULT_TTL
        self.comment = comment if comment is not None else DEFAULT_COMMENT

    @classmethod
    def from_definition(cls, definition: dict) -> DnsConfig:
        return cls(
            resolve(DNS_ZONE, definition["Zone"]),
            record_name=definition.get("RecordName"),
            ttl=definition.get("Ttl"),
            comment=definition.get("Comment"),
        )


def load_input_file(file_path: str) -> dict:
    """
    Loads the topology definition from a YAML (or JSON) file

    :raises IOError: if the file does not exist
    """
    if not path.exists(file_path):
        raise IOError(f"File {file_path} not found")
    with open(file_path) as input_fd:
        content = yaml.load(input_fd.read(), Loader=Loader)
    if not isinstance(content, dict):
        raise TypeError(f"{file_path} - The topology definition must be a mapping")
    return content


class TopologySettings:
    """
    Class to hold the execution settings and the topology definition

    :cvar str name_arg: argparse destination for the name of the topology
    :cvar str input_file_arg: argparse destination for the input file path
    """

    name_arg = "Name"
    input_file_arg = "InputFile"
    output_dir_arg = "OutputDirectory"
    format_arg = "OutputFormat"
    command_arg = "command"
    loglevel_arg = "loglevel"

    render_arg = "render"
    validate_arg = "validate"
    allowed_formats = ["json", "yaml"]
    default_format = "json"
    default_output_dir = path.abspath("./outputs")

    active_commands = [
        {
            "name": render_arg,
            "help": "Plans the topology and writes the resource graph and CFN template to disk",
        }
    ]
    validation_commands = [
        {
            "name": validate_arg,
            "help": "Validates the input file and plans the topology, without writing anything",
        }
    ]

    def __init__(self, content: dict = None, **kwargs):
        """
        :param dict content: the topology definition. Loaded from the input file if not set.
        :param dict kwargs: the execution settings, typically the CLI arguments
        """
        self.name = kwargs.get(self.name_arg) or "topology"
        self.input_file = kwargs.get(self.input_file_arg)
        self.output_dir = kwargs.get(self.output_dir_arg) or self.default_output_dir
        self.format = kwargs.get(self.format_arg) or self.default_format
        self.command = kwargs.get(self.command_arg) or self.render_arg
        if self.format not in self.allowed_formats:
            raise ValueError(
                f"Format {self.format} is not valid. Valid formats", self.allowed_formats
            )
        if content is None:
            if not self.input_file:
                raise KeyError("Either the content or an input file must be set")
            content = load_input_file(self.input_file)
        validate_input(content, self.input_file)
        self.content = content
        self.network_config = NetworkConfig.from_definition(content.get("Network"))
        self.cluster_name = (
            content["Cluster"]["Name"]
            if keyisset("Cluster", content) and keypresent("Name", content["Cluster"])
            else DEFAULT_CLUSTER_NAME
        )
        self.listener_config = ListenerConfig.from_definition(content.get("LoadBalancer"))
        self.dns_config = (
            DnsConfig.from_definition(content["Dns"]) if keyisset("Dns", content) else None
        )
        self.descriptors = [
            ServiceDescriptor.from_definition(service) for service in content["Services"]
        ]
        LOG.debug(f"{self.name} - Loaded {len(self.descriptors)} service(s)")

    def __repr__(self):
        return f"TopologySettings({self.name}, {self.input_file})"

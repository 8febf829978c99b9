#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Routing assignment: one target group per service, a path-pattern rule with a unique priority for each
routed service and the service without a path as the listener default action.

Rules are evaluated by the load balancer in ascending priority order, first match wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.descriptors import ServiceDescriptor

from compose_x_common.compose_x_common import keypresent

from ecs_topology.common.graph import (
    LISTENER,
    LOAD_BALANCER,
    ROUTING_RULE,
    TARGET_GROUP,
    GraphBuilder,
    ResourceGraph,
)
from ecs_topology.common.logging import LOG
from ecs_topology.descriptors import is_positive_int
from ecs_topology.ecs.ecs_builder import NETWORK_NODE
from ecs_topology.exceptions import (
    AmbiguousDefaultRouteError,
    DuplicatePriorityError,
    InvalidTopologyError,
    ListenerStateError,
)

LOAD_BALANCER_NODE = "load-balancer"
LISTENER_NODE = "listener"

DEFAULT_LB_NAME = "ServicesLB"
DEFAULT_LISTENER_PORT = 80
DEFAULT_TARGET_PORT = 80

LB_NAME_RE = re.compile(r"^(?!-)[a-zA-Z0-9-]{1,32}(?<!-)$")

UNCONFIGURED = "Unconfigured"
PARTIALLY_CONFIGURED = "PartiallyConfigured"
CONFIGURED = "Configured"


@dataclass(frozen=True)
class ListenerConfig:
    """
    Settings of the shared load balancer and its listener
    """

    name: str = DEFAULT_LB_NAME
    port: int = DEFAULT_LISTENER_PORT
    protocol: str = "HTTP"
    internet_facing: bool = True
    target_port: int = DEFAULT_TARGET_PORT

    def validate(self) -> list:
        problems = []
        if not isinstance(self.name, str) or not LB_NAME_RE.fullmatch(self.name):
            problems.append(f"name must match {LB_NAME_RE.pattern}, got {self.name!r}")
        for key in ("port", "target_port"):
            value = getattr(self, key)
            if not is_positive_int(value) or value > 65535:
                problems.append(
                    f"{key} must be an integer between 1 and 65535, got {value!r}"
                )
        return problems

    @classmethod
    def from_definition(cls, definition: dict = None) -> ListenerConfig:
        if not definition:
            return cls()
        return cls(
            name=definition["Name"] if keypresent("Name", definition) else DEFAULT_LB_NAME,
            port=(
                definition["Port"]
                if keypresent("Port", definition)
                else DEFAULT_LISTENER_PORT
            ),
            internet_facing=(
                definition["InternetFacing"]
                if keypresent("InternetFacing", definition)
                else True
            ),
            target_port=(
                definition["TargetPort"]
                if keypresent("TargetPort", definition)
                else DEFAULT_TARGET_PORT
            ),
        )


class ListenerConfiguration:
    """
    Tracks the routing attachments of the listener for one build pass.

    Unconfigured -> PartiallyConfigured on each attachment -> Configured once every service is attached.
    Configured is terminal.
    """

    def __init__(self, expected: int):
        self.expected = expected
        self.rules = []
        self.default_target_group = None
        self.state = CONFIGURED if expected == 0 else UNCONFIGURED

    @property
    def attached(self) -> int:
        return len(self.rules) + (1 if self.default_target_group else 0)

    def _attach(self) -> None:
        self.state = CONFIGURED if self.attached >= self.expected else PARTIALLY_CONFIGURED
        LOG.debug(f"{LISTENER_NODE} - {self.attached}/{self.expected} attached, {self.state}")

    def _check_open(self, target_group: str) -> None:
        if self.state == CONFIGURED:
            raise ListenerStateError(
                f"{LISTENER_NODE} is {CONFIGURED}, cannot attach {target_group}."
                " A new build pass is required"
            )

    def attach_rule(self, target_group: str, rule: str, path: str, priority: int) -> None:
        self._check_open(target_group)
        self.rules.append(
            {"TargetGroup": target_group, "Rule": rule, "Path": path, "Priority": priority}
        )
        self._attach()

    def set_default(self, target_group: str) -> None:
        self._check_open(target_group)
        if self.default_target_group:
            raise ListenerStateError(
                f"{LISTENER_NODE} already has {self.default_target_group} as default action"
            )
        self.default_target_group = target_group
        self._attach()


def partition_descriptors(descriptors: list) -> tuple:
    """
    :return: the services without route path, and the routed services, both in input order
    :rtype: tuple[list, list]
    """
    defaulted = [descriptor for descriptor in descriptors if descriptor.is_default_route]
    routed = [descriptor for descriptor in descriptors if not descriptor.is_default_route]
    return defaulted, routed


def assign_priorities(routed: list) -> dict:
    """
    Sets priorities on routed services. Explicit priorities are kept, the others get ascending
    values from 1 in input order, skipping the values already claimed explicitly.

    :param list[ServiceDescriptor] routed:
    :return: service name to priority
    :raises DuplicatePriorityError: if two services end up with the same priority
    """
    claimed = {descriptor.priority for descriptor in routed if descriptor.priority is not None}
    priorities = {}
    next_priority = 1
    for descriptor in routed:
        if descriptor.priority is not None:
            priorities[descriptor.name] = descriptor.priority
            continue
        while next_priority in claimed:
            next_priority += 1
        priorities[descriptor.name] = next_priority
        next_priority += 1
    owners = {}
    for name, priority in priorities.items():
        owners.setdefault(priority, []).append(name)
    duplicates = {priority: names for priority, names in owners.items() if len(names) > 1}
    if duplicates:
        raise DuplicatePriorityError(
            "Routing rules must have unique priorities. Duplicates", duplicates
        )
    return priorities


def add_load_balancer_nodes(
    builder: GraphBuilder, listener_config: ListenerConfig, configuration: ListenerConfiguration
) -> None:
    builder.add(
        LOAD_BALANCER,
        LOAD_BALANCER_NODE,
        {
            "Name": listener_config.name,
            "Type": "application",
            "Scheme": "internet-facing" if listener_config.internet_facing else "internal",
            "IngressPort": listener_config.port,
        },
        depends_on=[NETWORK_NODE],
    )
    depends_on = [LOAD_BALANCER_NODE]
    if configuration.default_target_group:
        depends_on.append(configuration.default_target_group)
    builder.add(
        LISTENER,
        LISTENER_NODE,
        {
            "Port": listener_config.port,
            "Protocol": listener_config.protocol,
            "DefaultTargetGroup": configuration.default_target_group,
            "Rules": [rule["Rule"] for rule in configuration.rules],
            "State": configuration.state,
        },
        depends_on=depends_on,
    )


def assign_routes(
    graph: ResourceGraph, descriptors: list, listener_config: ListenerConfig = None
) -> ResourceGraph:
    """
    Adds the target groups, the load balancer, the listener and the routing rules to the graph.
    Every check runs before any node gets created, the input graph is left untouched.

    :param ResourceGraph graph: the graph from the topology builder, with the service instances
    :param list[ServiceDescriptor] descriptors: the services, in the same order as for the build
    :param ListenerConfig listener_config: load balancer and listener settings
    :return: a new graph with the routing nodes
    :raises InvalidTopologyError: if the listener settings are invalid
    :raises AmbiguousDefaultRouteError: if more than one service has no route path
    :raises DuplicatePriorityError: if two routing rules would share a priority
    """
    if listener_config is None:
        listener_config = ListenerConfig()
    listener_problems = listener_config.validate()
    if listener_problems:
        raise InvalidTopologyError({LISTENER_NODE: listener_problems})
    descriptors = list(descriptors)
    defaulted, routed = partition_descriptors(descriptors)
    if len(defaulted) > 1:
        raise AmbiguousDefaultRouteError(
            "Only one service can be without route path and be the default action. Got",
            [descriptor.name for descriptor in defaulted],
        )
    priorities = assign_priorities(routed)
    missing = [
        descriptor.service_name
        for descriptor in descriptors
        if descriptor.service_name not in graph
    ]
    if missing:
        raise KeyError("Service instances not found in the graph", missing)

    configuration = ListenerConfiguration(len(descriptors))
    for descriptor in routed:
        configuration.attach_rule(
            descriptor.target_group_name,
            descriptor.rule_name,
            descriptor.route_path,
            priorities[descriptor.name],
        )
    if defaulted:
        configuration.set_default(defaulted[0].target_group_name)
    else:
        LOG.warning(
            f"{LISTENER_NODE} - No service without route path."
            " Unmatched requests get the load balancer 404 response"
        )

    builder = GraphBuilder(graph)
    for descriptor in descriptors:
        builder.add(
            TARGET_GROUP,
            descriptor.target_group_name,
            {
                "Port": listener_config.target_port,
                "Protocol": listener_config.protocol,
                "TargetType": "ip",
                "ContainerName": descriptor.name,
                "ContainerPort": descriptor.container_port,
                "Default": descriptor.is_default_route,
            },
            depends_on=[NETWORK_NODE, descriptor.service_name],
        )
    add_load_balancer_nodes(builder, listener_config, configuration)
    for rule in configuration.rules:
        LOG.info(
            f"{LISTENER_NODE} - {rule['Path']} -> {rule['TargetGroup']} (priority {rule['Priority']})"
        )
        builder.add(
            ROUTING_RULE,
            rule["Rule"],
            {
                "Priority": rule["Priority"],
                "PathPattern": rule["Path"],
                "TargetGroup": rule["TargetGroup"],
            },
            depends_on=[LISTENER_NODE, rule["TargetGroup"]],
        )
    if configuration.default_target_group:
        LOG.info(f"{LISTENER_NODE} - default action -> {configuration.default_target_group}")
    return builder.freeze()

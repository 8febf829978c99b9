#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Topology builder: creates the network, the cluster and for each service its task, container,
security group and service instance nodes.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.descriptors import ServiceDescriptor
    from ecs_topology.vpc.vpc_network import NetworkConfig

from ecs_topology.common import to_logical_id
from ecs_topology.common.graph import (
    CLUSTER,
    CONTAINER_SPEC,
    NETWORK,
    SECURITY_GROUP,
    SERVICE_INSTANCE,
    TASK_SPEC,
    GraphBuilder,
    ResourceGraph,
)
from ecs_topology.common.logging import LOG
from ecs_topology.exceptions import InvalidTopologyError

NETWORK_NODE = "network"
CLUSTER_NODE = "cluster"
CLUSTER_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]{1,255}$")

NETWORK_MODE = "awsvpc"
COMPATIBILITIES = ["EC2", "FARGATE"]
LAUNCH_TYPE = "FARGATE"
DEFAULT_DESIRED_COUNT = 1


def add_violation(violations: dict, name, problem: str) -> None:
    violations.setdefault(str(name), []).append(problem)


def validate_descriptors(descriptors: list) -> dict:
    """
    Full validation pass over the descriptors, collecting every problem instead of failing on the first.

    :param list[ServiceDescriptor] descriptors:
    :return: the violations, per descriptor name
    :rtype: dict
    """
    violations = {}
    if not descriptors:
        add_violation(violations, "services", "at least one service descriptor is required")
        return violations
    seen_names = {}
    seen_ids = {}
    seen_paths = {}
    for descriptor in descriptors:
        for problem in descriptor.validate():
            add_violation(violations, descriptor.name, problem)
        if descriptor.name in seen_names:
            add_violation(violations, descriptor.name, "name is not unique")
            continue
        seen_names[descriptor.name] = descriptor
        if isinstance(descriptor.name, str):
            logical_id = to_logical_id(descriptor.name)
            if logical_id in seen_ids:
                add_violation(
                    violations,
                    descriptor.name,
                    f"name collides with {seen_ids[logical_id]} once normalized to {logical_id}",
                )
            else:
                seen_ids[logical_id] = descriptor.name
        if descriptor.route_path is not None:
            if descriptor.route_path in seen_paths:
                add_violation(
                    violations,
                    descriptor.name,
                    f"route_path {descriptor.route_path} is already used by {seen_paths[descriptor.route_path]}",
                )
            else:
                seen_paths[descriptor.route_path] = descriptor.name
    return violations


def validate_topology(network_config: NetworkConfig, cluster_name: str, descriptors: list) -> None:
    """
    Validates the whole input of the builder

    :raises InvalidTopologyError: listing every invalid definition
    """
    violations = {}
    for problem in network_config.validate():
        add_violation(violations, NETWORK_NODE, problem)
    if not isinstance(cluster_name, str) or not CLUSTER_NAME_RE.fullmatch(cluster_name):
        add_violation(
            violations,
            CLUSTER_NODE,
            f"cluster name must match {CLUSTER_NAME_RE.pattern}, got {cluster_name!r}",
        )
    for name, problems in validate_descriptors(descriptors).items():
        violations.setdefault(name, []).extend(problems)
    if violations:
        LOG.error(f"Topology validation failed for {list(violations.keys())}")
        raise InvalidTopologyError(violations)


def add_service_nodes(builder: GraphBuilder, descriptor: ServiceDescriptor) -> None:
    """
    Adds the four nodes of a service, in order: task, container, security group, service instance.
    The container port is used for all of them.
    """
    builder.add(
        TASK_SPEC,
        descriptor.task_name,
        {
            "Family": descriptor.name,
            "Cpu": descriptor.cpu,
            "Memory": descriptor.memory,
            "NetworkMode": NETWORK_MODE,
            "RequiresCompatibilities": COMPATIBILITIES,
            "ContainerPort": descriptor.container_port,
        },
        depends_on=[CLUSTER_NODE],
    )
    builder.add(
        CONTAINER_SPEC,
        descriptor.container_name,
        {
            "ContainerName": descriptor.name,
            "Image": descriptor.image,
            "MemoryLimit": descriptor.memory,
            "PortMappings": [{"ContainerPort": descriptor.container_port, "Protocol": "tcp"}],
        },
        depends_on=[descriptor.task_name],
    )
    builder.add(
        SECURITY_GROUP,
        descriptor.security_group_name,
        {
            "Description": f"{descriptor.name} service security group",
            "IngressPort": descriptor.container_port,
        },
        depends_on=[NETWORK_NODE],
    )
    builder.add(
        SERVICE_INSTANCE,
        descriptor.service_name,
        {
            "ServiceName": descriptor.service_name,
            "LaunchType": LAUNCH_TYPE,
            "DesiredCount": DEFAULT_DESIRED_COUNT,
            "ContainerName": descriptor.name,
            "ContainerPort": descriptor.container_port,
        },
        depends_on=[
            CLUSTER_NODE,
            descriptor.task_name,
            descriptor.container_name,
            descriptor.security_group_name,
        ],
    )


def build(network_config: NetworkConfig, cluster_name: str, descriptors: list) -> ResourceGraph:
    """
    Builds the ResourceGraph for the network, cluster and services.
    Building twice from the same input gives equal graphs.

    :param NetworkConfig network_config: the VPC settings
    :param str cluster_name: display name of the ECS cluster
    :param list[ServiceDescriptor] descriptors: the services, in order
    :raises InvalidTopologyError: when any of the input is invalid. No graph is returned.
    """
    descriptors = list(descriptors)
    validate_topology(network_config, cluster_name, descriptors)
    builder = GraphBuilder()
    builder.add(
        NETWORK,
        NETWORK_NODE,
        {
            "CidrBlock": network_config.cidr_block,
            "AvailabilityZones": network_config.az_count,
            "Subnets": network_config.subnet_layers(),
        },
    )
    builder.add(CLUSTER, CLUSTER_NODE, {"ClusterName": cluster_name}, depends_on=[NETWORK_NODE])
    for descriptor in descriptors:
        LOG.debug(f"{cluster_name} - Adding service {descriptor.name}")
        add_service_nodes(builder, descriptor)
    graph = builder.freeze()
    LOG.info(f"{cluster_name} - Built topology with {len(descriptors)} service(s), {len(graph)} nodes")
    return graph

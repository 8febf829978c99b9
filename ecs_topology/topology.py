#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Main entry point to plan the whole topology: services, routing and DNS.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.common.settings import TopologySettings

from ecs_topology.common.graph import ResourceGraph
from ecs_topology.common.logging import LOG
from ecs_topology.ecs.ecs_builder import build
from ecs_topology.elbv2.elbv2_routing import assign_routes
from ecs_topology.route53.route53_records import (
    add_dns_record,
    bind,
    load_balancer_target,
)


def plan_topology(settings: TopologySettings) -> ResourceGraph:
    """
    Builds the services graph, assigns the routes and binds the DNS record if configured.
    Any failure stops the whole pass, no partial graph is returned.

    :param TopologySettings settings:
    :return: the complete resource graph
    """
    graph = build(settings.network_config, settings.cluster_name, settings.descriptors)
    graph = assign_routes(graph, settings.descriptors, settings.listener_config)
    if settings.dns_config:
        record = bind(
            settings.dns_config.zone,
            settings.dns_config.record_name,
            load_balancer_target(graph),
            settings.dns_config.ttl,
            settings.dns_config.comment,
        )
        graph = add_dns_record(graph, record)
    else:
        LOG.info(f"{settings.name} - No DNS settings, skipping the DNS record")
    LOG.info(f"{settings.name} - Planned {len(graph)} nodes")
    return graph

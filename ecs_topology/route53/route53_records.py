#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to define the DNS alias record pointing to the load balancer
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ecs_topology.common.graph import DNS_RECORD, GraphBuilder, GraphNode, ResourceGraph
from ecs_topology.common.logging import LOG
from ecs_topology.descriptors import is_positive_int
from ecs_topology.elbv2.elbv2_routing import LOAD_BALANCER_NODE
from ecs_topology.exceptions import InvalidTopologyError, InvalidTtlError, ResolutionError
from ecs_topology.resolver import DNS_ZONE, LOAD_BALANCER_TARGET, Handle

DNS_RECORD_NODE = "dns-record"
DEFAULT_RECORD_NAME = "services"
DEFAULT_TTL = 300
DEFAULT_COMMENT = "services subdomain"


@dataclass(frozen=True)
class DnsRecordSpec:
    """
    Declarative alias record
    """

    zone: Handle
    record_name: str
    target: Handle
    ttl: int
    comment: Optional[str] = None
    record_type: str = "A"

    def to_node(self) -> GraphNode:
        return GraphNode(
            DNS_RECORD,
            DNS_RECORD_NODE,
            {
                "Zone": self.zone,
                "RecordName": self.record_name,
                "Type": self.record_type,
                "AliasTarget": self.target,
                "Ttl": self.ttl,
                "Comment": self.comment,
            },
            depends_on=[self.target.identifier],
        )


def load_balancer_target(graph: ResourceGraph) -> Handle:
    """
    Returns the stable alias target of the graph load balancer, to bind DNS records to.

    :raises KeyError: if the graph has no load balancer
    """
    if LOAD_BALANCER_NODE not in graph:
        raise KeyError(f"No {LOAD_BALANCER_NODE} node in the graph. Assign the routes first")
    return Handle(LOAD_BALANCER_TARGET, LOAD_BALANCER_NODE)


def bind(
    zone: Handle,
    record_name: str,
    target: Handle,
    ttl_seconds: int,
    comment: str = None,
) -> DnsRecordSpec:
    """
    Defines the alias record for the target, in the given zone.

    :param Handle zone: the DNS zone handle
    :param str record_name: the record name, relative to the zone
    :param Handle target: the load balancer target handle
    :param int ttl_seconds: the TTL of the record
    :param str comment: optional comment for the record
    :raises InvalidTtlError: if the TTL is not a positive integer
    :raises InvalidTopologyError: if the record name is empty
    """
    if not is_positive_int(ttl_seconds):
        raise InvalidTtlError(f"TTL must be a positive integer. Got {ttl_seconds!r}")
    if not isinstance(zone, Handle) or zone.kind != DNS_ZONE:
        raise ResolutionError(f"zone must be a {DNS_ZONE} handle. Got {zone!r}")
    if not isinstance(target, Handle) or target.kind != LOAD_BALANCER_TARGET:
        raise ResolutionError(f"target must be a {LOAD_BALANCER_TARGET} handle. Got {target!r}")
    if not isinstance(record_name, str) or not record_name.strip("."):
        raise InvalidTopologyError(
            {DNS_RECORD_NODE: [f"record name must be a non-empty string. Got {record_name!r}"]}
        )
    LOG.debug(f"{DNS_RECORD_NODE} - {record_name} alias to {target.identifier}")
    return DnsRecordSpec(zone, record_name.strip("."), target, ttl_seconds, comment)


def add_dns_record(graph: ResourceGraph, record: DnsRecordSpec) -> ResourceGraph:
    builder = GraphBuilder(graph)
    builder.add_node(record.to_node())
    return builder.freeze()

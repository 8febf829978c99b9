#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Renders the DnsRecord node into a Route53 alias record
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.render import RenderContext

from troposphere import GetAtt, Template
from troposphere.route53 import AliasTarget, RecordSetType

from ecs_topology.common import to_logical_id
from ecs_topology.common.graph import GraphNode
from ecs_topology.common.logging import LOG


def record_fqdn(node: GraphNode) -> str:
    """Record name, fully qualified in the zone, i.e. services.example.com."""
    return f"{node.properties['RecordName']}.{node.properties['Zone'].attribute('ZoneName')}"


def render_record(template: Template, node: GraphNode, context: RenderContext) -> RecordSetType:
    """
    Alias records take the TTL of their target, the node TTL is only kept in the plan.
    """
    load_balancer = to_logical_id(node.properties["AliasTarget"].identifier)
    LOG.debug(
        f"{node.name} - TTL {node.properties['Ttl']} not rendered, alias records use the target TTL"
    )
    record_kwargs = {}
    if node.properties["Comment"]:
        record_kwargs["Comment"] = node.properties["Comment"]
    return RecordSetType(
        to_logical_id(node.name),
        template=template,
        HostedZoneName=node.properties["Zone"].attribute("ZoneName"),
        Name=record_fqdn(node),
        Type=node.properties["Type"],
        AliasTarget=AliasTarget(
            HostedZoneId=GetAtt(load_balancer, "CanonicalHostedZoneID"),
            DNSName=GetAtt(load_balancer, "DNSName"),
        ),
        **record_kwargs,
    )

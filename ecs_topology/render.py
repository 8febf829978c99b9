#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Renders a ResourceGraph into a CloudFormation template, for the provisioning engine to execute.
"""

from __future__ import annotations

from troposphere import GetAtt, Output, Template

from ecs_topology import __version__
from ecs_topology.common import to_logical_id
from ecs_topology.common.graph import (
    CLUSTER,
    CONTAINER_SPEC,
    DNS_RECORD,
    LISTENER,
    LOAD_BALANCER,
    NETWORK,
    ROUTING_RULE,
    SECURITY_GROUP,
    SERVICE_INSTANCE,
    TARGET_GROUP,
    TASK_SPEC,
    ResourceGraph,
)
from ecs_topology.common.logging import LOG
from ecs_topology.ecs.ecs_template import (
    render_cluster,
    render_container,
    render_security_group,
    render_service,
    render_task,
)
from ecs_topology.elbv2.elbv2_routing import LISTENER_NODE, LOAD_BALANCER_NODE
from ecs_topology.elbv2.elbv2_template import (
    LB_SG_T,
    render_listener,
    render_load_balancer,
    render_routing_rule,
    render_target_group,
)
from ecs_topology.route53.route53_template import record_fqdn, render_record
from ecs_topology.vpc.vpc_template import render_network


class RenderContext:
    """
    Shared state of one rendering pass: the graph being rendered and the network resources
    the other nodes are placed into.
    """

    def __init__(self, graph: ResourceGraph):
        self.graph = graph
        self.vpc = None
        self.public_subnets = []
        self.app_subnets = []
        self.load_balancer_sg = LB_SG_T
        self.listener_title = to_logical_id(LISTENER_NODE)


def render_network_node(template, node, context: RenderContext):
    network = render_network(template, node)
    context.vpc = network["vpc"]
    context.public_subnets = network["public_subnets"]
    context.app_subnets = network["app_subnets"]
    return network["vpc"]


RENDERERS = {
    NETWORK: render_network_node,
    CLUSTER: render_cluster,
    TASK_SPEC: render_task,
    CONTAINER_SPEC: render_container,
    SECURITY_GROUP: render_security_group,
    SERVICE_INSTANCE: render_service,
    TARGET_GROUP: render_target_group,
    LOAD_BALANCER: render_load_balancer,
    LISTENER: render_listener,
    ROUTING_RULE: render_routing_rule,
    DNS_RECORD: render_record,
}


def add_outputs(template: Template, graph: ResourceGraph) -> None:
    if LOAD_BALANCER_NODE in graph:
        template.add_output(
            Output(
                "LoadBalancerDnsName",
                Value=GetAtt(to_logical_id(LOAD_BALANCER_NODE), "DNSName"),
            )
        )
    for record in graph.of_kind(DNS_RECORD):
        template.add_output(Output(f"{to_logical_id(record.name)}Fqdn", Value=record_fqdn(record)))


def render_template(graph: ResourceGraph, description: str = None) -> Template:
    """
    Renders every node of the graph, in graph order, into a new template.

    :param ResourceGraph graph: the planned topology
    :param str description: optional template description
    :rtype: troposphere.Template
    """
    template = Template(
        Description=description or f"ECS Topology {__version__} - services topology"
    )
    context = RenderContext(graph)
    for node in graph:
        if context.vpc is None and node.kind != NETWORK:
            raise ValueError(f"{node.name} - The network must be rendered first")
        RENDERERS[node.kind](template, node, context)
    add_outputs(template, graph)
    LOG.info(f"Rendered {len(graph)} nodes into {len(template.resources)} resources")
    return template

#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Renders the load balancer, listener, target groups and routing rules nodes into ELBv2 resources
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.render import RenderContext

from troposphere import GetAtt, Ref, Tags, Template
from troposphere.ec2 import SecurityGroup, SecurityGroupRule
from troposphere.elasticloadbalancingv2 import (
    Action,
    Condition,
    FixedResponseConfig,
    Listener,
    ListenerRule,
    ListenerRuleAction,
    LoadBalancer,
    PathPatternConfig,
    TargetGroup,
    TargetGroupAttribute,
)

from ecs_topology.common import to_logical_id
from ecs_topology.common.graph import GraphNode
from ecs_topology.common.logging import LOG

LB_SG_T = "LoadBalancerSecurityGroup"


def no_match_response() -> Action:
    """
    Predefined reply of the listener when no rule matches and there is no default service
    """
    return Action(
        Type="fixed-response",
        FixedResponseConfig=FixedResponseConfig(
            ContentType="text/plain",
            MessageBody="Not Found",
            StatusCode="404",
        ),
    )


def forward_to(target_group: str, action_class=Action):
    return action_class(
        Type="forward", TargetGroupArn=Ref(to_logical_id(target_group)), Order=1
    )


def render_target_group(template: Template, node: GraphNode, context: RenderContext) -> TargetGroup:
    return TargetGroup(
        to_logical_id(node.name),
        template=template,
        Name=node.name,
        Port=node.properties["Port"],
        Protocol=node.properties["Protocol"],
        TargetType=node.properties["TargetType"],
        VpcId=Ref(context.vpc),
        TargetGroupAttributes=[
            TargetGroupAttribute(Key="deregistration_delay.timeout_seconds", Value="10")
        ],
        Tags=Tags(Name=node.name, ContainerName=node.properties["ContainerName"]),
    )


def render_load_balancer(template: Template, node: GraphNode, context: RenderContext) -> LoadBalancer:
    """
    Renders the load balancer in the public subnets, with its security group open on the listener port
    """
    port = node.properties["IngressPort"]
    security_group = SecurityGroup(
        LB_SG_T,
        template=template,
        GroupDescription=f"{node.properties['Name']} load balancer security group",
        VpcId=Ref(context.vpc),
        SecurityGroupIngress=[
            SecurityGroupRule(
                IpProtocol="tcp",
                FromPort=port,
                ToPort=port,
                CidrIp="0.0.0.0/0",
                Description=f"Open to the world on {port}",
            )
        ],
        Tags=Tags(Name=f"{node.properties['Name']}-sg"),
    )
    subnets = (
        context.public_subnets
        if node.properties["Scheme"] == "internet-facing"
        else context.app_subnets
    )
    return LoadBalancer(
        to_logical_id(node.name),
        template=template,
        Name=node.properties["Name"],
        Type=node.properties["Type"],
        Scheme=node.properties["Scheme"],
        Subnets=[Ref(subnet) for subnet in subnets],
        SecurityGroups=[GetAtt(security_group, "GroupId")],
        Tags=Tags(Name=node.properties["Name"]),
    )


def render_listener(template: Template, node: GraphNode, context: RenderContext) -> Listener:
    """
    Renders the listener. The default action forwards to the default service target group if any,
    otherwise replies with a 404.
    """
    default_target_group = node.properties["DefaultTargetGroup"]
    if default_target_group:
        default_actions = [forward_to(default_target_group)]
    else:
        LOG.info(f"{node.name} - Using fixed 404 response as default action")
        default_actions = [no_match_response()]
    return Listener(
        to_logical_id(node.name),
        template=template,
        LoadBalancerArn=Ref(to_logical_id(node.depends_on[0])),
        Port=node.properties["Port"],
        Protocol=node.properties["Protocol"],
        DefaultActions=default_actions,
    )


def render_routing_rule(template: Template, node: GraphNode, context: RenderContext) -> ListenerRule:
    listener, target_group = node.depends_on
    return ListenerRule(
        to_logical_id(node.name),
        template=template,
        ListenerArn=Ref(to_logical_id(listener)),
        Priority=node.properties["Priority"],
        Conditions=[
            Condition(
                Field="path-pattern",
                PathPatternConfig=PathPatternConfig(Values=[node.properties["PathPattern"]]),
            )
        ],
        Actions=[forward_to(target_group, ListenerRuleAction)],
    )

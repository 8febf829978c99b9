#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Renders the cluster, task, container, security group and service nodes into ECS resources
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.render import RenderContext

from troposphere import GetAtt, Ref, Sub, Tags, Template
from troposphere.ec2 import SecurityGroup, SecurityGroupIngress
from troposphere.ecs import (
    AwsvpcConfiguration,
    Cluster,
    ContainerDefinition,
    LoadBalancer,
    NetworkConfiguration,
    PortMapping,
    Service,
    TaskDefinition,
)
from troposphere.iam import Role

from ecs_topology.common import to_logical_id
from ecs_topology.common.graph import (
    CONTAINER_SPEC,
    ROUTING_RULE,
    TARGET_GROUP,
    GraphNode,
)
from ecs_topology.common.logging import LOG

EXEC_ROLE_MANAGED_POLICY = (
    "arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"
)


def service_role_trust_policy(service_name: str) -> dict:
    """
    Simple function to format and return the trust policy for a service role

    :param str service_name: name of the AWS service, i.e. ecs-tasks
    :return: policy document
    """
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": Sub(f"{service_name}.${{AWS::URLSuffix}}")},
                "Action": ["sts:AssumeRole"],
            }
        ],
    }


def render_cluster(template: Template, node: GraphNode, context: RenderContext) -> Cluster:
    return Cluster(
        to_logical_id(node.name),
        template=template,
        ClusterName=node.properties["ClusterName"],
        Tags=Tags(Name=node.properties["ClusterName"]),
    )


def define_container_definition(node: GraphNode) -> ContainerDefinition:
    """
    Container definition of the task, with the container port exposed
    """
    return ContainerDefinition(
        Name=node.properties["ContainerName"],
        Image=node.properties["Image"].attribute("ImageUri"),
        Essential=True,
        Memory=node.properties["MemoryLimit"],
        PortMappings=[
            PortMapping(ContainerPort=mapping["ContainerPort"], Protocol=mapping["Protocol"])
            for mapping in node.properties["PortMappings"]
        ],
    )


def render_task(template: Template, node: GraphNode, context: RenderContext) -> TaskDefinition:
    """
    Renders the TaskSpec with the ContainerSpec nodes that belong to it, and its execution role.
    """
    title = to_logical_id(node.name)
    exec_role = Role(
        f"{title}ExecutionRole",
        template=template,
        AssumeRolePolicyDocument=service_role_trust_policy("ecs-tasks"),
        ManagedPolicyArns=[EXEC_ROLE_MANAGED_POLICY],
    )
    containers = context.graph.dependents(node.name, CONTAINER_SPEC)
    if not containers:
        raise ValueError(f"{node.name} - No container defined for the task")
    return TaskDefinition(
        title,
        template=template,
        Family=node.properties["Family"],
        Cpu=str(node.properties["Cpu"]),
        Memory=str(node.properties["Memory"]),
        NetworkMode=node.properties["NetworkMode"],
        RequiresCompatibilities=list(node.properties["RequiresCompatibilities"]),
        ExecutionRoleArn=GetAtt(exec_role, "Arn"),
        ContainerDefinitions=[
            define_container_definition(container) for container in containers
        ],
        Tags=Tags(Name=node.properties["Family"]),
    )


def render_container(template: Template, node: GraphNode, context: RenderContext) -> None:
    """
    Containers are rendered as part of their task definition
    """
    LOG.debug(f"{node.name} - rendered within {node.depends_on[0]}")


def render_security_group(template: Template, node: GraphNode, context: RenderContext) -> SecurityGroup:
    return SecurityGroup(
        to_logical_id(node.name),
        template=template,
        GroupDescription=node.properties["Description"],
        VpcId=Ref(context.vpc),
        Tags=Tags(Name=node.name),
    )


def add_load_balancer_ingress(template: Template, node: GraphNode, context: RenderContext) -> None:
    """
    Allows the load balancer security group to reach the service on its container port
    """
    port = node.properties["IngressPort"]
    SecurityGroupIngress(
        f"{to_logical_id(node.name)}FromLoadBalancer",
        template=template,
        GroupId=GetAtt(to_logical_id(node.name), "GroupId"),
        SourceSecurityGroupId=GetAtt(context.load_balancer_sg, "GroupId"),
        IpProtocol="tcp",
        FromPort=port,
        ToPort=port,
        Description=f"From load balancer to {port}",
    )


def render_service(template: Template, node: GraphNode, context: RenderContext) -> Service:
    """
    Renders the Fargate service in the application subnets.
    When a target group is bound to the service, the containers get registered into it,
    the load balancer is allowed in and the service waits for the listener and its rules.
    """
    cluster, task, _container, security_group = node.depends_on
    load_balancers = []
    depends_on = []
    for target_group in context.graph.dependents(node.name, TARGET_GROUP):
        load_balancers.append(
            LoadBalancer(
                ContainerName=node.properties["ContainerName"],
                ContainerPort=node.properties["ContainerPort"],
                TargetGroupArn=Ref(to_logical_id(target_group.name)),
            )
        )
        depends_on.append(context.listener_title)
        depends_on += [
            to_logical_id(rule.name)
            for rule in context.graph.dependents(target_group.name, ROUTING_RULE)
        ]
    service_kwargs = {}
    if load_balancers:
        add_load_balancer_ingress(template, context.graph[security_group], context)
        service_kwargs.update(
            {"LoadBalancers": load_balancers, "DependsOn": list(dict.fromkeys(depends_on))}
        )
    else:
        LOG.warning(f"{node.name} - No target group bound to the service")
    return Service(
        to_logical_id(node.name),
        template=template,
        Cluster=Ref(to_logical_id(cluster)),
        TaskDefinition=Ref(to_logical_id(task)),
        ServiceName=node.properties["ServiceName"],
        LaunchType=node.properties["LaunchType"],
        DesiredCount=node.properties["DesiredCount"],
        NetworkConfiguration=NetworkConfiguration(
            AwsvpcConfiguration=AwsvpcConfiguration(
                AssignPublicIp="DISABLED",
                Subnets=[Ref(subnet) for subnet in context.app_subnets],
                SecurityGroups=[GetAtt(to_logical_id(security_group), "GroupId")],
            )
        ),
        **service_kwargs,
    )

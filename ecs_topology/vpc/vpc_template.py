#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Renders the Network node into the VPC and its associated resources
"""

from troposphere import AWS_REGION, GetAtt, GetAZs, Ref, Select, Sub, Tags, Template
from troposphere.ec2 import (
    EIP,
    VPC,
    InternetGateway,
    NatGateway,
    Route,
    RouteTable,
    Subnet,
    SubnetRouteTableAssociation,
    VPCGatewayAttachment,
)

from ecs_topology.common.graph import GraphNode
from ecs_topology.vpc.vpc_maths import APP_LAYER, PUBLIC_LAYER

VPC_T = "Vpc"
IGW_T = "InternetGateway"
PUBLIC_SUBNETS_T = "PublicSubnet"
APP_SUBNETS_T = "AppSubnet"


def add_vpc_core(template: Template, vpc_cidr: str):
    """
    Function to create the core resources of the VPC

    :param template: the Template()
    :param vpc_cidr: str of the VPC CIDR i.e. 10.0.0.0/16
    :return: tuple() with the vpc and igw object
    """
    vpc = VPC(
        VPC_T,
        template=template,
        CidrBlock=vpc_cidr,
        EnableDnsHostnames=True,
        EnableDnsSupport=True,
        Tags=Tags(Name=Ref("AWS::StackName")),
    )
    igw = InternetGateway(IGW_T, template=template)
    VPCGatewayAttachment(
        "VpcGatewayAttachment",
        template=template,
        InternetGatewayId=Ref(igw),
        VpcId=Ref(vpc),
    )
    return vpc, igw


def add_layer_subnets(template: Template, vpc, layer_title: str, cidrs: list, public: bool) -> list:
    subnets = []
    for count, cidr in enumerate(cidrs):
        subnets.append(
            Subnet(
                f"{layer_title}{count + 1}",
                template=template,
                VpcId=Ref(vpc),
                CidrBlock=cidr,
                AvailabilityZone=Select(count, GetAZs(Ref(AWS_REGION))),
                MapPublicIpOnLaunch=public,
                Tags=Tags(Name=Sub(f"${{AWS::StackName}}-{layer_title}-{count + 1}")),
            )
        )
    return subnets


def add_public_routing(template: Template, vpc, igw, subnets: list) -> None:
    route_table = RouteTable(
        "PublicRouteTable", template=template, VpcId=Ref(vpc)
    )
    Route(
        "PublicDefaultRoute",
        template=template,
        DependsOn=["VpcGatewayAttachment"],
        RouteTableId=Ref(route_table),
        DestinationCidrBlock="0.0.0.0/0",
        GatewayId=Ref(igw),
    )
    for subnet in subnets:
        SubnetRouteTableAssociation(
            f"{subnet.title}RouteTableAssociation",
            template=template,
            RouteTableId=Ref(route_table),
            SubnetId=Ref(subnet),
        )


def add_app_routing(template: Template, vpc, public_subnets: list, subnets: list) -> None:
    """
    Application subnets reach out (i.e. to pull images) through a single NAT gateway
    """
    eip = EIP("NatGatewayEip", template=template, Domain="vpc")
    nat = NatGateway(
        "NatGateway",
        template=template,
        AllocationId=GetAtt(eip, "AllocationId"),
        SubnetId=Ref(public_subnets[0]),
    )
    route_table = RouteTable("AppRouteTable", template=template, VpcId=Ref(vpc))
    Route(
        "AppDefaultRoute",
        template=template,
        RouteTableId=Ref(route_table),
        DestinationCidrBlock="0.0.0.0/0",
        NatGatewayId=Ref(nat),
    )
    for subnet in subnets:
        SubnetRouteTableAssociation(
            f"{subnet.title}RouteTableAssociation",
            template=template,
            RouteTableId=Ref(route_table),
            SubnetId=Ref(subnet),
        )


def render_network(template: Template, node: GraphNode) -> dict:
    """
    Renders the network node.

    :return: the rendered objects other renderers refer to: vpc, public and app subnets
    :rtype: dict
    """
    vpc, igw = add_vpc_core(template, node.properties["CidrBlock"])
    layers = node.properties["Subnets"]
    public_subnets = add_layer_subnets(
        template, vpc, PUBLIC_SUBNETS_T, layers[PUBLIC_LAYER], public=True
    )
    app_subnets = add_layer_subnets(
        template, vpc, APP_SUBNETS_T, layers[APP_LAYER], public=False
    )
    add_public_routing(template, vpc, igw, public_subnets)
    add_app_routing(template, vpc, public_subnets, app_subnets)
    return {"vpc": vpc, "public_subnets": public_subnets, "app_subnets": app_subnets}

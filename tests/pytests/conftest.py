#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from os import path

from pytest import fixture

from ecs_topology.descriptors import ServiceDescriptor
from ecs_topology.resolver import IMAGE_REGISTRY, resolve
from ecs_topology.vpc.vpc_network import NetworkConfig

ACCOUNT_ID = "123456789012"


def image(name: str):
    return resolve(
        IMAGE_REGISTRY, f"arn:aws:ecr:us-east-1:{ACCOUNT_ID}:repository/{name}"
    )


def service(name, port=8080, path=None, priority=None, **kwargs):
    return ServiceDescriptor(
        name=name,
        image=image(f"{name.lower()}-app"),
        container_port=port,
        route_path=path,
        priority=priority,
        **kwargs,
    )


@fixture
def use_cases():
    return path.abspath(f"{path.dirname(__file__)}/../../use-cases")


@fixture
def network():
    return NetworkConfig()


@fixture
def micro_frontends():
    """Navigation, home and details routed by path, main as the default"""
    return [
        service("nav", 9002, "/nav.js"),
        service("home", 9001, "/home.js"),
        service("details", 9003, "/details.js"),
        service("main", 9000),
    ]


@fixture
def make_service():
    return service

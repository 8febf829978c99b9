#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import fixture, mark, raises

from ecs_topology.common.graph import DNS_RECORD
from ecs_topology.ecs.ecs_builder import build
from ecs_topology.elbv2.elbv2_routing import LOAD_BALANCER_NODE, assign_routes
from ecs_topology.exceptions import InvalidTopologyError, InvalidTtlError, ResolutionError
from ecs_topology.resolver import DNS_ZONE, LOAD_BALANCER_TARGET, Handle, resolve
from ecs_topology.route53.route53_records import (
    DNS_RECORD_NODE,
    add_dns_record,
    bind,
    load_balancer_target,
)


@fixture
def zone():
    return resolve(DNS_ZONE, "example.com")


@fixture
def routed(network, make_service):
    descriptors = [make_service("main", 9000)]
    return assign_routes(build(network, "Services", descriptors), descriptors)


def test_bind_record(zone, routed):
    record = bind(zone, "services", load_balancer_target(routed), 300, "services subdomain")
    assert record.ttl == 300
    assert record.record_name == "services"
    assert record.target.identifier == LOAD_BALANCER_NODE
    graph = add_dns_record(routed, record)
    node = graph[DNS_RECORD_NODE]
    assert node.kind == DNS_RECORD
    assert node.depends_on == (LOAD_BALANCER_NODE,)
    assert node.properties["Ttl"] == 300
    assert len(graph) == len(routed) + 1


@mark.parametrize("ttl", [-1, 0, "300", 1.5, True, None])
def test_invalid_ttl(zone, routed, ttl):
    with raises(InvalidTtlError):
        bind(zone, "services", load_balancer_target(routed), ttl)


def test_invalid_handles(zone, routed):
    target = load_balancer_target(routed)
    with raises(ResolutionError):
        bind(target, "services", target, 300)
    with raises(ResolutionError):
        bind(zone, "services", zone, 300)
    with raises(ResolutionError):
        bind(zone, "services", Handle(LOAD_BALANCER_TARGET[:-1], LOAD_BALANCER_NODE), 300)


@mark.parametrize("record_name", ["", ".", "..", None])
def test_invalid_record_name(zone, routed, record_name):
    with raises(InvalidTopologyError) as error:
        bind(zone, record_name, load_balancer_target(routed), 300)
    assert error.value.names == [DNS_RECORD_NODE]


def test_no_load_balancer(network, make_service):
    graph = build(network, "Services", [make_service("main", 9000)])
    with raises(KeyError):
        load_balancer_target(graph)

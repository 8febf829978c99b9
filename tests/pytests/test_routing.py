#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import fixture, raises

from ecs_topology.common.graph import LISTENER, LOAD_BALANCER, ROUTING_RULE, TARGET_GROUP
from ecs_topology.ecs.ecs_builder import build
from ecs_topology.elbv2.elbv2_routing import (
    CONFIGURED,
    LISTENER_NODE,
    LOAD_BALANCER_NODE,
    PARTIALLY_CONFIGURED,
    UNCONFIGURED,
    ListenerConfig,
    ListenerConfiguration,
    assign_priorities,
    assign_routes,
)
from ecs_topology.exceptions import (
    AmbiguousDefaultRouteError,
    DuplicatePriorityError,
    InvalidTopologyError,
    ListenerStateError,
)


@fixture
def routed(network, micro_frontends):
    graph = build(network, "Services", micro_frontends)
    return assign_routes(graph, micro_frontends)


def test_micro_frontends_routing(routed, micro_frontends):
    assert len(routed.of_kind(TARGET_GROUP)) == 4
    assert len(routed.of_kind(LOAD_BALANCER)) == 1
    assert len(routed.of_kind(LISTENER)) == 1
    rules = routed.of_kind(ROUTING_RULE)
    assert len(rules) == 3
    assert {rule.properties["PathPattern"]: rule.properties["TargetGroup"] for rule in rules} == {
        "/nav.js": "nav-tg",
        "/home.js": "home-tg",
        "/details.js": "details-tg",
    }
    assert sorted(rule.properties["Priority"] for rule in rules) == [1, 2, 3]
    listener = routed[LISTENER_NODE]
    assert listener.properties["DefaultTargetGroup"] == "main-tg"
    assert listener.properties["State"] == CONFIGURED
    assert "main-tg" in listener.depends_on


def test_target_groups_follow_services(routed, micro_frontends):
    for descriptor in micro_frontends:
        target_group = routed[descriptor.target_group_name]
        assert descriptor.service_name in target_group.depends_on
        assert target_group.properties["ContainerPort"] == descriptor.container_port


def test_input_graph_untouched(network, micro_frontends):
    graph = build(network, "Services", micro_frontends)
    nodes = len(graph)
    assign_routes(graph, micro_frontends)
    assert len(graph) == nodes
    assert LOAD_BALANCER_NODE not in graph


def test_two_defaults(network, make_service):
    descriptors = [make_service("main", 9000), make_service("other", 9001)]
    graph = build(network, "Services", descriptors)
    with raises(AmbiguousDefaultRouteError):
        assign_routes(graph, descriptors)


def test_duplicate_priority(network, make_service):
    descriptors = [
        make_service("a", 8080, "/a", priority=5),
        make_service("b", 8080, "/b", priority=5),
    ]
    graph = build(network, "Services", descriptors)
    with raises(DuplicatePriorityError):
        assign_routes(graph, descriptors)


def test_auto_priorities_skip_claimed(make_service):
    priorities = assign_priorities(
        [
            make_service("api", 8080, "/api/*", priority=2),
            make_service("docs", 8081, "/docs/*"),
            make_service("static", 8082, "/static/*"),
        ]
    )
    assert priorities == {"api": 2, "docs": 1, "static": 3}


def test_no_default_service(network, make_service):
    descriptors = [make_service("api", 8080, "/api/*"), make_service("docs", 8081, "/docs/*")]
    graph = assign_routes(build(network, "Services", descriptors), descriptors)
    listener = graph[LISTENER_NODE]
    assert listener.properties["DefaultTargetGroup"] is None
    assert listener.properties["State"] == CONFIGURED
    assert listener.depends_on == (LOAD_BALANCER_NODE,)


def test_invalid_listener(network, make_service):
    descriptors = [make_service("main", 9000)]
    graph = build(network, "Services", descriptors)
    with raises(InvalidTopologyError) as error:
        assign_routes(graph, descriptors, ListenerConfig(port=0))
    assert error.value.names == [LISTENER_NODE]


def test_missing_service_instance(network, make_service):
    graph = build(network, "Services", [make_service("main", 9000)])
    with raises(KeyError):
        assign_routes(graph, [make_service("main", 9000), make_service("api", 8080, "/api")])


def test_listener_state_machine():
    configuration = ListenerConfiguration(2)
    assert configuration.state == UNCONFIGURED
    configuration.attach_rule("api-tg", "api-rule", "/api", 1)
    assert configuration.state == PARTIALLY_CONFIGURED
    configuration.set_default("main-tg")
    assert configuration.state == CONFIGURED
    with raises(ListenerStateError):
        configuration.attach_rule("late-tg", "late-rule", "/late", 2)


def test_listener_single_default():
    configuration = ListenerConfiguration(3)
    configuration.set_default("main-tg")
    with raises(ListenerStateError):
        configuration.set_default("other-tg")


def test_listener_config_from_definition():
    config = ListenerConfig.from_definition({"Name": "Front", "Port": 8080, "InternetFacing": False})
    assert config.name == "Front"
    assert config.port == 8080
    assert config.internet_facing is False
    assert ListenerConfig.from_definition(None) == ListenerConfig()


def test_listener_config_keeps_invalid_values():
    config = ListenerConfig.from_definition({"Port": 0, "TargetPort": 0, "Name": ""})
    assert config.port == 0
    assert len(config.validate()) == 3

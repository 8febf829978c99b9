#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import raises

from ecs_topology.common.graph import (
    CLUSTER,
    NETWORK,
    TASK_SPEC,
    GraphBuilder,
    GraphNode,
)


def test_builder_keeps_order_and_dependencies():
    builder = GraphBuilder()
    builder.add(NETWORK, "network", {"CidrBlock": "10.0.0.0/16"})
    builder.add(CLUSTER, "cluster", {"ClusterName": "Services"}, depends_on=["network"])
    graph = builder.freeze()
    assert graph.names == ["network", "cluster"]
    assert graph["cluster"].depends_on == ("network",)
    assert graph.dependents("network") == [graph["cluster"]]
    assert graph.of_kind(CLUSTER) == [graph["cluster"]]


def test_builder_rejects_forward_dependencies():
    builder = GraphBuilder()
    with raises(KeyError):
        builder.add(CLUSTER, "cluster", depends_on=["network"])


def test_builder_rejects_duplicate_names():
    builder = GraphBuilder()
    builder.add(NETWORK, "network")
    with raises(KeyError):
        builder.add(NETWORK, "network")


def test_invalid_kind():
    with raises(ValueError):
        GraphNode("Bucket", "bucket")


def test_graph_is_not_changed_by_extension():
    builder = GraphBuilder()
    builder.add(NETWORK, "network")
    graph = builder.freeze()
    extended = GraphBuilder(graph)
    extended.add(CLUSTER, "cluster", depends_on=["network"])
    assert len(graph) == 1
    assert len(extended.freeze()) == 2


def test_node_properties_are_read_only():
    properties = {"Cpu": 256}
    node = GraphNode(TASK_SPEC, "nav-task", properties)
    properties["Cpu"] = 1024
    assert node.properties["Cpu"] == 256
    with raises(TypeError):
        node.properties["Cpu"] = 512


def test_to_dict():
    builder = GraphBuilder()
    builder.add(NETWORK, "network", {"AvailabilityZones": 2})
    assert builder.freeze().to_dict() == {
        "Nodes": [
            {
                "Name": "network",
                "Kind": NETWORK,
                "DependsOn": [],
                "Properties": {"AvailabilityZones": 2},
            }
        ]
    }

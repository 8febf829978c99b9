#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
The ResourceGraph, ordered and acyclic set of provisioning nodes, and the builder used to grow it.

A graph never changes once frozen. Components that need to add nodes seed a new
:class:`GraphBuilder` from an existing graph and freeze a new one.
"""

from __future__ import annotations

from copy import deepcopy
from types import MappingProxyType
from typing import Iterator

NETWORK = "Network"
CLUSTER = "Cluster"
TASK_SPEC = "TaskSpec"
CONTAINER_SPEC = "ContainerSpec"
SECURITY_GROUP = "SecurityGroup"
SERVICE_INSTANCE = "ServiceInstance"
LOAD_BALANCER = "LoadBalancer"
LISTENER = "Listener"
TARGET_GROUP = "TargetGroup"
ROUTING_RULE = "RoutingRule"
DNS_RECORD = "DnsRecord"

NODE_KINDS = (
    NETWORK,
    CLUSTER,
    TASK_SPEC,
    CONTAINER_SPEC,
    SECURITY_GROUP,
    SERVICE_INSTANCE,
    LOAD_BALANCER,
    LISTENER,
    TARGET_GROUP,
    ROUTING_RULE,
    DNS_RECORD,
)


def serialize_value(value):
    """
    Turns node properties into plain JSON/YAML friendly values.
    Objects exposing ``to_dict()`` (i.e. Handles) are serialized with it.
    """
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(val) for val in value]
    return value


class GraphNode:
    """
    One provisioning node of the ResourceGraph

    :ivar str kind: one of NODE_KINDS
    :ivar str name: unique, deterministic name of the node
    :ivar tuple depends_on: names of the nodes that must exist before this one
    """

    __slots__ = ("_kind", "_name", "_properties", "_depends_on")

    def __init__(self, kind: str, name: str, properties: dict = None, depends_on=None):
        if kind not in NODE_KINDS:
            raise ValueError(f"Node kind {kind} is not valid. Valid kinds", NODE_KINDS)
        self._kind = kind
        self._name = name
        self._properties = MappingProxyType(deepcopy(properties or {}))
        self._depends_on = tuple(depends_on or ())

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def name(self) -> str:
        return self._name

    @property
    def properties(self) -> MappingProxyType:
        return self._properties

    @property
    def depends_on(self) -> tuple:
        return self._depends_on

    def to_dict(self) -> dict:
        return {
            "Name": self.name,
            "Kind": self.kind,
            "DependsOn": list(self.depends_on),
            "Properties": serialize_value(dict(self.properties)),
        }

    def __eq__(self, other):
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash((self.kind, self.name, self.depends_on))

    def __repr__(self):
        return f"{self.kind}({self.name})"


class ResourceGraph:
    """
    Immutable, ordered and acyclic collection of GraphNode.
    Nodes are kept in creation order, which is a valid provisioning order.
    """

    def __init__(self, nodes=None):
        self._nodes = tuple(nodes or ())
        self._index = {node.name: node for node in self._nodes}

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self._nodes)

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, name):
        return name in self._index

    def __getitem__(self, name) -> GraphNode:
        return self._index[name]

    def __eq__(self, other):
        if not isinstance(other, ResourceGraph):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(tuple(node.name for node in self._nodes))

    @property
    def nodes(self) -> tuple:
        return self._nodes

    @property
    def names(self) -> list:
        return [node.name for node in self._nodes]

    def get(self, name, default=None):
        return self._index.get(name, default)

    def of_kind(self, kind: str) -> list:
        return [node for node in self._nodes if node.kind == kind]

    def dependents(self, name: str, kind: str = None) -> list:
        """
        Returns the nodes that declare a dependency on the given node, optionally filtered by kind.
        """
        return [
            node
            for node in self._nodes
            if name in node.depends_on and (kind is None or node.kind == kind)
        ]

    def to_dict(self) -> dict:
        return {"Nodes": [node.to_dict() for node in self._nodes]}


class GraphBuilder:
    """
    Accumulates nodes, enforcing that names are unique and that dependencies only point at
    nodes already added. Acyclicity follows from the latter.
    """

    def __init__(self, graph: ResourceGraph = None):
        self._nodes = list(graph.nodes) if graph else []
        self._names = {node.name for node in self._nodes}

    def add(self, kind: str, name: str, properties: dict = None, depends_on=None) -> GraphNode:
        if name in self._names:
            raise KeyError(f"Node {name} is already defined in the graph")
        depends_on = tuple(depends_on or ())
        missing = [dep for dep in depends_on if dep not in self._names]
        if missing:
            raise KeyError(f"Node {name} depends on undefined node(s)", missing)
        node = GraphNode(kind, name, properties, depends_on)
        self._nodes.append(node)
        self._names.add(name)
        return node

    def add_node(self, node: GraphNode) -> GraphNode:
        return self.add(node.kind, node.name, dict(node.properties), node.depends_on)

    def freeze(self) -> ResourceGraph:
        return ResourceGraph(self._nodes)

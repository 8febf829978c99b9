#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from os import path
from tempfile import mkdtemp

from behave import given, then
from pytest import raises

from ecs_topology import exceptions
from ecs_topology.common.files import FileArtifact
from ecs_topology.common.graph import ROUTING_RULE, SERVICE_INSTANCE, TARGET_GROUP
from ecs_topology.common.settings import TopologySettings
from ecs_topology.elbv2.elbv2_routing import LISTENER_NODE, LOAD_BALANCER_NODE
from ecs_topology.render import render_template
from ecs_topology.route53.route53_records import DNS_RECORD_NODE
from ecs_topology.topology import plan_topology


def here():
    return path.abspath(path.dirname(__file__))


def rule_for_path(graph, route_path):
    for rule in graph.of_kind(ROUTING_RULE):
        if rule.properties["PathPattern"] == route_path:
            return rule
    raise KeyError(f"No routing rule for {route_path}")


@given("I use {file_path} as my topology definition file")
def step_impl(context, file_path):
    """
    Function to load the topology definition from use-cases.

    :param context:
    :param str file_path:
    """
    cases_path = path.abspath(f"{here()}/../../../{file_path}")
    context.settings = TopologySettings(
        **{
            TopologySettings.name_arg: "test",
            TopologySettings.command_arg: TopologySettings.render_arg,
            TopologySettings.input_file_arg: cases_path,
            TopologySettings.format_arg: "yaml",
            TopologySettings.output_dir_arg: mkdtemp(),
        },
    )


@then("I plan the topology")
def step_impl(context):
    context.graph = plan_topology(context.settings)


@then("planning the topology fails with {error}")
def step_impl(context, error):
    with raises(getattr(exceptions, error)):
        plan_topology(context.settings)


@then("I have {count:d} services with their target groups")
def step_impl(context, count):
    services = context.graph.of_kind(SERVICE_INSTANCE)
    assert len(services) == count
    for service in services:
        assert context.graph.dependents(service.name, TARGET_GROUP)


@then("I have {count:d} routing rules")
def step_impl(context, count):
    assert len(context.graph.of_kind(ROUTING_RULE)) == count


@then("the listener default action goes to {target_group}")
def step_impl(context, target_group):
    assert context.graph[LISTENER_NODE].properties["DefaultTargetGroup"] == target_group


@then("the listener has no default action")
def step_impl(context):
    assert context.graph[LISTENER_NODE].properties["DefaultTargetGroup"] is None


@then("the path {route_path} is routed to {target_group}")
def step_impl(context, route_path, target_group):
    assert rule_for_path(context.graph, route_path).properties["TargetGroup"] == target_group


@then("the path {route_path} has priority {priority:d}")
def step_impl(context, route_path, priority):
    assert rule_for_path(context.graph, route_path).properties["Priority"] == priority


@then("the DNS record {record_name} points to the load balancer")
def step_impl(context, record_name):
    record = context.graph[DNS_RECORD_NODE]
    assert record.properties["RecordName"] == record_name
    assert record.depends_on == (LOAD_BALANCER_NODE,)


@then("I render all files to verify execution")
def step_impl(context):
    template = render_template(context.graph)
    for artifact in (
        FileArtifact("test.graph", context.settings, content=context.graph.to_dict()),
        FileArtifact("test.template", context.settings, template=template),
    ):
        assert path.exists(artifact.write())

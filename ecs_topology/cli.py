#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Console script for ecs_topology.
"""

import argparse
import logging
import sys

from jsonschema.exceptions import ValidationError

from ecs_topology.common.files import FileArtifact
from ecs_topology.common.logging import LOG
from ecs_topology.common.settings import TopologySettings
from ecs_topology.exceptions import TopologyBaseException
from ecs_topology.render import render_template
from ecs_topology.topology import plan_topology

VALID_LEVELS = ["FATAL", "CRITICAL", "ERROR", "WARNING", "WARN", "INFO", "DEBUG"]


def main_parser():
    """
    Console script for ecs_topology.
    """
    parser = argparse.ArgumentParser(
        description="Plans ECS services behind a shared load balancer"
    )
    cmd_parsers = parser.add_subparsers(
        dest=TopologySettings.command_arg, help="Command to execute."
    )
    files_parser = argparse.ArgumentParser(add_help=False)
    base_command_parser = argparse.ArgumentParser(add_help=False)
    files_parser.add_argument(
        "-f",
        "--input-file",
        dest=TopologySettings.input_file_arg,
        required=True,
        help="Path to the topology definition file",
    )
    files_parser.add_argument(
        "--loglevel",
        dest=TopologySettings.loglevel_arg,
        type=str,
        help="Log level. Defaults to INFO",
        required=False,
    )
    base_command_parser.add_argument(
        "-n",
        "--name",
        help="Name of your topology, used for the output files",
        required=True,
        type=str,
        dest=TopologySettings.name_arg,
    )
    base_command_parser.add_argument(
        "-d",
        "--output-dir",
        required=False,
        help="Output directory to write the graph and template to.",
        type=str,
        dest=TopologySettings.output_dir_arg,
        default=TopologySettings.default_output_dir,
    )
    base_command_parser.add_argument(
        "--format",
        help="Defines the format you want to use.",
        type=str,
        dest=TopologySettings.format_arg,
        choices=TopologySettings.allowed_formats,
        default=TopologySettings.default_format,
    )
    for command in TopologySettings.active_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=[base_command_parser, files_parser],
        )
    for command in TopologySettings.validation_commands:
        cmd_parsers.add_parser(
            name=command["name"], help=command["help"], parents=[files_parser]
        )
    return parser


def set_log_level(loglevel: str) -> None:
    if loglevel.upper() in VALID_LEVELS:
        LOG.setLevel(logging.getLevelName(loglevel.upper()))
        LOG.handlers[0].setLevel(logging.getLevelName(loglevel.upper()))
    else:
        LOG.warning(f"Log level value {loglevel} is invalid. Must be one of {VALID_LEVELS}")


def main(args=None):
    """
    Main entry point for CLI
    :return: status code
    """
    parser = main_parser()
    if args is None:
        args = sys.argv[1:]
    if not args:
        parser.print_help()
        return 0
    args = parser.parse_args(args)
    if getattr(args, TopologySettings.loglevel_arg, None):
        set_log_level(getattr(args, TopologySettings.loglevel_arg))
    LOG.debug(args)
    try:
        settings = TopologySettings(**vars(args))
        graph = plan_topology(settings)
        template = render_template(graph, description=f"{settings.name} services topology")
    except (TopologyBaseException, ValidationError) as error:
        LOG.error(error)
        return 1
    if settings.command == TopologySettings.validate_arg:
        LOG.info(f"{settings.input_file} is valid.")
        return 0
    FileArtifact(f"{settings.name}.graph", settings, content=graph.to_dict()).write()
    FileArtifact(f"{settings.name}.template", settings, template=template).write()
    return 0


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover

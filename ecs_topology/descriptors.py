#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Service descriptors, the unit of configuration of the topology: one per deployable service.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from compose_x_common.compose_x_common import keypresent

from ecs_topology.resolver import IMAGE_REGISTRY, Handle, resolve

DEFAULT_CPU = 256
DEFAULT_MEMORY = 512
MAX_PRIORITY = 50000
MAX_PATH_LENGTH = 128

SERVICE_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]{0,28}$")
ROUTE_PATH_RE = re.compile(r"^/\S*$")


def is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class ServiceDescriptor:
    """
    Declarative record describing one deployable service's shape and routing intent.
    Without route_path, the service is the default route of the listener.
    """

    name: str
    image: Handle
    container_port: int
    cpu: int = DEFAULT_CPU
    memory: int = DEFAULT_MEMORY
    route_path: Optional[str] = None
    priority: Optional[int] = None

    @property
    def is_default_route(self) -> bool:
        return self.route_path is None

    @property
    def task_name(self) -> str:
        return f"{self.name}-task"

    @property
    def container_name(self) -> str:
        return f"{self.name}-container"

    @property
    def security_group_name(self) -> str:
        return f"{self.name}-sg"

    @property
    def service_name(self) -> str:
        return f"{self.name}-service"

    @property
    def target_group_name(self) -> str:
        return f"{self.name}-tg"

    @property
    def rule_name(self) -> str:
        return f"{self.name}-rule"

    def validate(self) -> list:
        """
        Checks the descriptor on its own.

        :return: the list of problems found, empty when valid
        """
        problems = []
        if not isinstance(self.name, str) or not SERVICE_NAME_RE.fullmatch(self.name):
            problems.append(
                f"name must match {SERVICE_NAME_RE.pattern}, got {self.name!r}"
            )
        if not isinstance(self.image, Handle) or self.image.kind != IMAGE_REGISTRY:
            problems.append(f"image must be a resolved {IMAGE_REGISTRY} handle")
        if not is_positive_int(self.container_port) or self.container_port > 65535:
            problems.append(
                f"container_port must be an integer between 1 and 65535, got {self.container_port!r}"
            )
        if not is_positive_int(self.cpu):
            problems.append(f"cpu must be a positive integer, got {self.cpu!r}")
        if not is_positive_int(self.memory):
            problems.append(f"memory must be a positive integer, got {self.memory!r}")
        if self.route_path is not None and (
            not isinstance(self.route_path, str)
            or not ROUTE_PATH_RE.fullmatch(self.route_path)
            or len(self.route_path) > MAX_PATH_LENGTH
        ):
            problems.append(
                f"route_path must start with / and have no whitespace (max {MAX_PATH_LENGTH} chars),"
                f" got {self.route_path!r}"
            )
        if self.priority is not None:
            if not is_positive_int(self.priority) or self.priority > MAX_PRIORITY:
                problems.append(
                    f"priority must be an integer between 1 and {MAX_PRIORITY}, got {self.priority!r}"
                )
            if self.route_path is None:
                problems.append("priority is set but there is no route_path")
        return problems

    @classmethod
    def from_definition(cls, definition: dict) -> ServiceDescriptor:
        """
        Creates the descriptor from the input file definition, resolving the image identifier.

        :param dict definition: the service definition, as in the Services list of the input file
        :raises ResolutionError: if the image identifier is not valid
        """
        return cls(
            name=definition["Name"],
            image=resolve(IMAGE_REGISTRY, definition["Image"]),
            container_port=definition["Port"],
            cpu=definition["Cpu"] if keypresent("Cpu", definition) else DEFAULT_CPU,
            memory=(
                definition["Memory"]
                if keypresent("Memory", definition)
                else DEFAULT_MEMORY
            ),
            route_path=definition["Path"] if keypresent("Path", definition) else None,
            priority=(
                definition["Priority"] if keypresent("Priority", definition) else None
            ),
        )

#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Network configuration of the topology
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from compose_x_common.compose_x_common import keypresent

from ecs_topology.vpc.vpc_maths import get_subnet_layers

DEFAULT_VPC_CIDR = "10.0.0.0/16"
DEFAULT_AZS_COUNT = 2
MIN_PREFIX = 16
MAX_PREFIX = 24
MAX_AZS_COUNT = 4


@dataclass(frozen=True)
class NetworkConfig:
    """
    Address space and number of availability zones of the VPC
    """

    cidr_block: str = DEFAULT_VPC_CIDR
    az_count: int = DEFAULT_AZS_COUNT

    def validate(self) -> list:
        problems = []
        try:
            vpc_net = ipaddress.IPv4Network(self.cidr_block)
            if not MIN_PREFIX <= vpc_net.prefixlen <= MAX_PREFIX:
                problems.append(
                    f"cidr_block prefix must be between /{MIN_PREFIX} and /{MAX_PREFIX}, got {self.cidr_block}"
                )
        except (ipaddress.AddressValueError, ipaddress.NetmaskValueError, ValueError):
            problems.append(f"cidr_block {self.cidr_block!r} is not a valid IPv4 network")
        if (
            not isinstance(self.az_count, int)
            or isinstance(self.az_count, bool)
            or not 1 <= self.az_count <= MAX_AZS_COUNT
        ):
            problems.append(
                f"az_count must be an integer between 1 and {MAX_AZS_COUNT}, got {self.az_count!r}"
            )
        return problems

    def subnet_layers(self) -> dict:
        return get_subnet_layers(self.cidr_block, self.az_count)

    @classmethod
    def from_definition(cls, definition: dict = None) -> NetworkConfig:
        if not definition:
            return cls()
        return cls(
            cidr_block=(
                definition["CidrBlock"]
                if keypresent("CidrBlock", definition)
                else DEFAULT_VPC_CIDR
            ),
            az_count=(
                definition["AvailabilityZones"]
                if keypresent("AvailabilityZones", definition)
                else DEFAULT_AZS_COUNT
            ),
        )

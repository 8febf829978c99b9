#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Network (VPC) planning and rendering
"""

from ecs_topology.vpc.vpc_network import NetworkConfig

__all__ = ["NetworkConfig"]

#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""Top-level package for ECS Topology."""

__author__ = """John Mille"""
__email__ = "john@compose-x.io"
__version__ = "0.1.0"

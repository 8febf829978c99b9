#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Most commonly used functions shared across all modules.
"""

from __future__ import annotations

import re
from math import log

NONALPHANUM = re.compile(r"([^a-zA-Z\d]+)")


def clpow2(x):
    """
    Function to return the closest power of two from given x

    :param x: Number to look the closest power of two for

    :returns: int() closest power of two
    """
    return pow(2, int(log(x, 2) + 0.5))


def to_logical_id(name: str) -> str:
    """
    Turns a node or service name into a valid CloudFormation logical ID.

    >>> to_logical_id("nav-task")
    'NavTask'
    """
    return "".join(
        part[0].upper() + part[1:] for part in NONALPHANUM.sub(" ", name).split()
    )

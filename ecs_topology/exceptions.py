#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Custom exceptions for ecs-topology
"""


class TopologyBaseException(Exception):
    """
    Top class for ecs-topology Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class ResolutionError(TopologyBaseException):
    """
    Exception when an external identifier cannot be turned into a Handle
    """


class InvalidTopologyError(TopologyBaseException):
    """
    Exception raised after a full validation pass over the topology input.

    :ivar dict violations: name of the offending descriptor (or ``network`` / ``cluster``) to the list of problems
    """

    def __init__(self, violations: dict):
        self.violations = {name: list(problems) for name, problems in violations.items()}
        details = "; ".join(
            f"{name}: {', '.join(problems)}"
            for name, problems in self.violations.items()
        )
        super().__init__(
            f"Invalid topology - {len(self.violations)} invalid definition(s). {details}"
        )

    @property
    def names(self) -> list:
        return list(self.violations.keys())


class AmbiguousDefaultRouteError(TopologyBaseException):
    """
    Exception when more than one service has no route path, and would be the default action
    """


class DuplicatePriorityError(TopologyBaseException):
    """
    Exception when two routing rules end up with the same priority
    """


class InvalidTtlError(TopologyBaseException):
    """
    Exception when the DNS record TTL is not a positive integer
    """


class ListenerStateError(TopologyBaseException):
    """
    Exception when trying to attach a target to a listener that is already fully configured
    """

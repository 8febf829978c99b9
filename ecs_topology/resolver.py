#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Resolves external identifiers (ECR repositories, DNS zones) into opaque handles.

Only the format of the identifier is validated, the resources are never looked up.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ecs_topology.common.logging import LOG
from ecs_topology.exceptions import ResolutionError

IMAGE_REGISTRY = "image-registry"
DNS_ZONE = "dns-zone"
LOAD_BALANCER_TARGET = "load-balancer-target"

DEFAULT_IMAGE_TAG = "latest"

ECR_REPO_ARN_RE = re.compile(
    r"^arn:aws(?:-[a-z]+)*:ecr:(?P<region>[a-z]{2}(?:-[a-z]+)+-\d):(?P<account_id>\d{12}):"
    r"repository/(?P<repository>[a-z0-9](?:[a-z0-9._/-]*[a-z0-9])?)(?::(?P<tag>[\w][\w.-]{0,127}))?$"
)
ECR_IMAGE_URI_RE = re.compile(
    r"^(?P<account_id>\d{12})\.dkr\.ecr\.(?P<region>[a-z]{2}(?:-[a-z]+)+-\d)\.amazonaws\.com(?:\.cn)?/"
    r"(?P<repository>[a-z0-9](?:[a-z0-9._/-]*[a-z0-9])?)(?::(?P<tag>[\w][\w.-]{0,127}))?$"
)
DOMAIN_NAME_RE = re.compile(
    r"^(?=.{1,253}\.?$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(?:\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))+\.?$"
)
ARN_SERVICE_RE = re.compile(r"^arn:aws(?:-[a-z]+)*:(?P<service>[a-z0-9-]+):")


@dataclass(frozen=True)
class Handle:
    """
    Opaque reference to an externally resolved resource.
    The planning core passes handles around, only the template renderers read their value.
    """

    kind: str
    identifier: str
    value: tuple = ()

    def attribute(self, key: str, default=None):
        for attr_key, attr_value in self.value:
            if attr_key == key:
                return attr_value
        return default

    def to_dict(self) -> dict:
        return {"Kind": self.kind, "Identifier": self.identifier}


def resolve_image(identifier: str) -> Handle:
    """
    Resolves an ECR repository ARN or ECR image URI into an image Handle.
    The tag defaults to latest.
    """
    parts = ECR_REPO_ARN_RE.fullmatch(identifier) or ECR_IMAGE_URI_RE.fullmatch(identifier)
    if not parts:
        raise ResolutionError(
            f"{IMAGE_REGISTRY} - {identifier} is neither an ECR repository ARN nor an ECR image URI"
        )
    tag = parts.group("tag") or DEFAULT_IMAGE_TAG
    image_uri = (
        f"{parts.group('account_id')}.dkr.ecr.{parts.group('region')}.amazonaws.com"
        f"/{parts.group('repository')}:{tag}"
    )
    return Handle(
        IMAGE_REGISTRY,
        identifier,
        (
            ("ImageUri", image_uri),
            ("Repository", parts.group("repository")),
            ("Tag", tag),
        ),
    )


def resolve_zone(identifier: str) -> Handle:
    """
    Resolves a domain name into a DNS zone Handle. The zone name is normalized with a trailing dot.
    """
    if not DOMAIN_NAME_RE.fullmatch(identifier):
        raise ResolutionError(f"{DNS_ZONE} - {identifier} is not a valid domain name")
    zone_name = identifier.lower().rstrip(".")
    return Handle(DNS_ZONE, identifier, (("ZoneName", f"{zone_name}."),))


RESOLVERS = {
    IMAGE_REGISTRY: (resolve_image, "ecr"),
    DNS_ZONE: (resolve_zone, "route53"),
}


def resolve(kind: str, identifier: str) -> Handle:
    """
    Turns an external identifier into an opaque Handle for the given resource kind.

    :param str kind: one of image-registry, dns-zone
    :param str identifier: the registry ARN/URI or the domain name
    :raises ResolutionError: when the identifier is empty, of the wrong kind or malformed
    """
    if kind not in RESOLVERS:
        raise ResolutionError(
            f"Resource kind {kind} is not supported. Supported kinds", list(RESOLVERS)
        )
    if not isinstance(identifier, str) or not identifier.strip():
        raise ResolutionError(f"{kind} - identifier must be a non-empty string")
    identifier = identifier.strip()
    resolver, arn_service = RESOLVERS[kind]
    arn_parts = ARN_SERVICE_RE.match(identifier)
    if arn_parts and arn_parts.group("service") != arn_service:
        raise ResolutionError(
            f"{kind} - {identifier} is an ARN for {arn_parts.group('service')}, expected {arn_service}"
        )
    handle = resolver(identifier)
    LOG.debug(f"{kind} - Resolved {identifier}")
    return handle

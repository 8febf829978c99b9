#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Layers subnets calculator for the topology VPC.
Each AZ range is cut in half for the application subnets, a quarter for the public ones.
The last quarter is left unallocated.
"""

import ipaddress

from ecs_topology.common import clpow2

APP_LAYER = "app"
PUBLIC_LAYER = "pub"
RESERVED_LAYER = "reserved"


def prefix_for_size(pow2: int, max_prefix: int = 32) -> int:
    """
    Returns the network prefix holding exactly pow2 addresses

    >>> prefix_for_size(256)
    24
    """
    return max_prefix - (pow2.bit_length() - 1)


def cut_per_az(az_cidr, layers_cidr):
    """Subdivide the range of one AZ into the layers

    :param az_cidr: CIDR to split
    :param layers_cidr: dict() getting updated with layers
    """
    maj_splits = list(az_cidr.subnets(prefixlen_diff=1))
    layers_cidr[APP_LAYER].append(maj_splits[0])
    min_splits = list(maj_splits[1].subnets(prefixlen_diff=1))
    layers_cidr[PUBLIC_LAYER].append(min_splits[0])
    layers_cidr[RESERVED_LAYER].append(min_splits[1])


def get_subnets(cidr, azs):
    """
    Get the lists of Subnets CIDRs, per layer, for the given number of AZs.
    Odd numbers of AZs are rounded up to keep power of two ranges.
    """
    vpc_net = ipaddress.IPv4Network(f"{cidr}")
    number_ips = int(vpc_net.num_addresses - 2)

    if (azs != 2) and (azs % 2):
        azs += 1

    layers_cidr = {APP_LAYER: [], PUBLIC_LAYER: [], RESERVED_LAYER: []}

    ips_per_az = number_ips / azs
    azs_prefix = prefix_for_size(clpow2(ips_per_az))
    subnets_per_az = list(vpc_net.subnets(new_prefix=azs_prefix))

    for az in subnets_per_az:
        cut_per_az(az, layers_cidr)
    return layers_cidr


def get_subnet_layers(cidr, azs):
    """
    Get the application and public subnets CIDRs, one per AZ, as strings.

    :param str cidr: the VPC CIDR
    :param int azs: number of AZs
    :return: dict with the app and pub layers
    """
    layers = get_subnets(cidr, azs)
    return {
        layer: [f"{subnet}" for subnet in layers[layer][:azs]]
        for layer in (APP_LAYER, PUBLIC_LAYER)
    }

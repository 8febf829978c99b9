#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import mark

from ecs_topology.vpc.vpc_maths import (
    APP_LAYER,
    PUBLIC_LAYER,
    get_subnet_layers,
    prefix_for_size,
)
from ecs_topology.vpc.vpc_network import NetworkConfig


def test_prefix_for_size():
    assert prefix_for_size(256) == 24
    assert prefix_for_size(32768) == 17


@mark.parametrize("cidr,azs", [("10.0.0.0/16", 2), ("172.16.0.0/20", 3), ("192.168.0.0/24", 4)])
def test_one_subnet_per_az(cidr, azs):
    layers = get_subnet_layers(cidr, azs)
    assert len(layers[APP_LAYER]) == azs
    assert len(layers[PUBLIC_LAYER]) == azs
    assert len(set(layers[APP_LAYER] + layers[PUBLIC_LAYER])) == 2 * azs


def test_single_az():
    layers = get_subnet_layers("10.0.0.0/16", 1)
    assert layers == {APP_LAYER: ["10.0.0.0/18"], PUBLIC_LAYER: ["10.0.64.0/19"]}


def test_network_config_validation():
    assert NetworkConfig().validate() == []
    assert NetworkConfig("10.0.0.0/8").validate()
    assert NetworkConfig("10.0.0.0/25").validate()
    assert NetworkConfig("not-a-cidr").validate()
    assert NetworkConfig(az_count=0).validate()
    assert NetworkConfig(az_count=5).validate()


def test_network_config_from_definition():
    config = NetworkConfig.from_definition({"CidrBlock": "172.16.0.0/20", "AvailabilityZones": 3})
    assert config == NetworkConfig("172.16.0.0/20", 3)
    assert NetworkConfig.from_definition(None) == NetworkConfig()

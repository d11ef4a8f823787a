#!/usr/bin/env python3
"""
Tests for address range expansion and target construction
"""

import ipaddress

import pytest

from portsweep.core.errors import ErrorCode, EndpointConstructionFailed, InvalidNetworkConfiguration
from portsweep.core.network import NetworkRange, Target, build_targets, make_target


def test_prefix_32_yields_base_address_only():
    network_range = NetworkRange.build("192.168.7.42", 32)

    assert list(network_range) == [ipaddress.IPv4Address("192.168.7.42")]


@pytest.mark.parametrize("prefix", [22, 24, 28, 30, 31, 32])
def test_address_count_matches_prefix(prefix):
    network_range = NetworkRange.build("10.20.0.0", prefix)

    addresses = list(network_range.addresses())

    assert len(addresses) == 2 ** (32 - prefix)
    assert len(network_range) == 2 ** (32 - prefix)


def test_whole_ipv4_space_is_sized_without_iterating():
    network_range = NetworkRange.build("0.0.0.0", 0)

    assert len(network_range) == 2 ** 32
    assert next(iter(network_range)) == ipaddress.IPv4Address("0.0.0.0")


def test_network_and_broadcast_addresses_are_included():
    addresses = [str(a) for a in NetworkRange.build("10.0.0.0", 30)]

    assert addresses == ["10.0.0.0", "10.0.0.1", "10.0.0.2", "10.0.0.3"]


def test_expansion_is_restartable_and_deterministic():
    network_range = NetworkRange.build("172.16.4.0", 29)

    assert list(network_range) == list(network_range)
    assert list(network_range) == list(NetworkRange.build("172.16.4.0", 29))


def test_prefix_accepts_string_and_str_renders_cidr():
    network_range = NetworkRange.build(ipaddress.IPv4Address("10.1.0.0"), "16")

    assert network_range.prefix_length == 16
    assert str(network_range) == "10.1.0.0/16"


@pytest.mark.parametrize("base, prefix", [
    ("10.0.0.1", 24),       # host bits set
    ("192.168.1.128", 24),
    ("10.0.0.0", 33),
    ("10.0.0.0", -1),
    ("10.0.0.0", "x"),
    ("300.0.0.0", 8),
    ("fe80::", 64),
])
def test_impossible_networks_are_rejected(base, prefix):
    with pytest.raises(InvalidNetworkConfiguration) as excinfo:
        NetworkRange.build(base, prefix)

    assert excinfo.value.code == ErrorCode.IMPOSSIBLE_CIDR
    assert str(excinfo.value).startswith("3003 : ")


def test_targets_cover_cross_product_address_major():
    targets = list(build_targets(["10.0.0.1", "10.0.0.2"], [22, 80]))

    assert [str(t) for t in targets] == [
        "10.0.0.1:22", "10.0.0.1:80", "10.0.0.2:22", "10.0.0.2:80",
    ]
    assert {t.endpoint for t in targets} == {
        ("10.0.0.1", 22), ("10.0.0.1", 80), ("10.0.0.2", 22), ("10.0.0.2", 80),
    }


def test_target_count_is_addresses_times_ports_without_dedup():
    network_range = NetworkRange.build("10.9.8.0", 29)
    ports = [443, 22, 443]

    targets = list(build_targets(network_range, ports))

    assert len(targets) == len(network_range) * len(ports)
    assert [t.port for t in targets[:3]] == [443, 22, 443]


def test_target_building_is_deterministic():
    network_range = NetworkRange.build("10.0.0.0", 30)

    assert list(build_targets(network_range, [1, 2])) == list(build_targets(network_range, [1, 2]))


def test_make_target_accepts_boundary_ports():
    assert make_target("127.0.0.1", 0) == Target(ipaddress.IPv4Address("127.0.0.1"), 0)
    assert make_target(ipaddress.IPv4Address("127.0.0.1"), 65535).port == 65535


@pytest.mark.parametrize("address, port", [
    ("127.0.0.1", 65536),
    ("127.0.0.1", -1),
    ("127.0.0.1", "80"),
    ("not-an-ip", 80),
])
def test_make_target_rejects_bad_endpoints(address, port):
    with pytest.raises(EndpointConstructionFailed) as excinfo:
        make_target(address, port)

    assert excinfo.value.code == ErrorCode.SOCKET_ADDRESS_FAILED_TO_SET


def test_build_targets_is_lazy():
    targets = build_targets(["10.0.0.1"], [80, 70000])

    assert next(targets).port == 80
    with pytest.raises(EndpointConstructionFailed):
        next(targets)


@pytest.mark.parametrize("prefix", [24.9, 24.0, True, "24.0", None])
def test_prefix_must_be_a_whole_number(prefix):
    with pytest.raises(InvalidNetworkConfiguration) as excinfo:
        NetworkRange.build("10.0.0.0", prefix)

    assert excinfo.value.code == ErrorCode.IMPOSSIBLE_CIDR


def test_prefix_string_may_carry_whitespace():
    assert NetworkRange.build("10.0.0.0", " 24 ").prefix_length == 24

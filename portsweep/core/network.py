"""
PortSweep target construction
Expands a CIDR block into host addresses and pairs them with ports
"""

import ipaddress
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple, Union

from portsweep.core.errors import EndpointConstructionFailed, InvalidNetworkConfiguration

logger = logging.getLogger(__name__)

MAX_PORT = 65535


@dataclass(frozen=True)
class NetworkRange:
    """An IPv4 CIDR block given as base address plus prefix length

    The base address must not have host bits set for the prefix; such a
    pair has no CIDR representation and is rejected on construction.
    Iterating yields every address of the block, network and broadcast
    addresses included, in ascending order. Each iteration starts over.
    """
    base_address: ipaddress.IPv4Address
    prefix_length: int

    def __post_init__(self):
        prefix = self.prefix_length
        if isinstance(prefix, str) and prefix.strip().isdecimal():
            prefix = int(prefix.strip())
        if isinstance(prefix, bool) or not isinstance(prefix, int):
            raise InvalidNetworkConfiguration(
                f"Prefix length {self.prefix_length!r} is not a whole number"
            )
        if not 0 <= prefix <= 32:
            raise InvalidNetworkConfiguration(
                f"Prefix length {prefix} is outside 0-32"
            )

        try:
            address = ipaddress.IPv4Address(
                self.base_address if isinstance(self.base_address, int) else str(self.base_address).strip()
            )
        except ValueError:
            raise InvalidNetworkConfiguration(
                f"{self.base_address!r} is not an IPv4 address"
            ) from None

        try:
            ipaddress.IPv4Network((address, prefix), strict=True)
        except ValueError:
            raise InvalidNetworkConfiguration(
                f"An impossible cidr combination was entered: {address}/{prefix}"
            ) from None

        object.__setattr__(self, "base_address", address)
        object.__setattr__(self, "prefix_length", prefix)

    @classmethod
    def build(cls, base_address: Union[str, ipaddress.IPv4Address],
              prefix_length: Union[int, str]) -> "NetworkRange":
        """Build a validated range, raising InvalidNetworkConfiguration"""
        network_range = cls(base_address, prefix_length)
        logger.debug(f"Network String: {network_range}")
        return network_range

    @property
    def network(self) -> ipaddress.IPv4Network:
        return ipaddress.IPv4Network((self.base_address, self.prefix_length))

    def addresses(self) -> Iterator[ipaddress.IPv4Address]:
        """Lazily yield every address covered by the block"""
        return iter(self.network)

    def __iter__(self) -> Iterator[ipaddress.IPv4Address]:
        return self.addresses()

    def __len__(self) -> int:
        return self.network.num_addresses

    def __str__(self) -> str:
        return f"{self.base_address}/{self.prefix_length}"


@dataclass(frozen=True)
class Target:
    """A single (address, port) pair to probe"""
    address: ipaddress.IPv4Address
    port: int

    @property
    def endpoint(self) -> Tuple[str, int]:
        return str(self.address), self.port

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


def make_target(address: Union[str, ipaddress.IPv4Address], port: int) -> Target:
    """Pair an address with a port, raising EndpointConstructionFailed on bad input"""
    try:
        ip = ipaddress.IPv4Address(address if isinstance(address, int) else str(address))
    except ValueError:
        raise EndpointConstructionFailed(f"Failed to assign socket for {address!r}") from None

    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= MAX_PORT:
        raise EndpointConstructionFailed(f"Failed to assign socket for {ip}:{port!r}")

    return Target(ip, port)


def build_targets(addresses: Iterable[Union[str, ipaddress.IPv4Address]],
                  ports: Sequence[int]) -> Iterator[Target]:
    """Yield one target per port for every address, address-major"""
    for address in addresses:
        for port in ports:
            target = make_target(address, port)
            logger.debug(f"Targeting: {target}")
            yield target

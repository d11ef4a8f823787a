"""
Input validation and parsing for PortSweep
Turns raw network id, prefix and port strings into engine inputs
"""

import logging
import re
from typing import List, Pattern

from portsweep.core.errors import InvalidInputError, PortParseError, UserExit
from portsweep.core.network import MAX_PORT

logger = logging.getLogger(__name__)

NETWORK_ID_PATTERN = re.compile(r"^([0-9]{1,3}\.){3}[0-9]{1,3}$")
NETWORK_CIDR_PATTERN = re.compile(r"^/?[0-9]{1,2}$")
PORT_LIST_PATTERN = re.compile(r"^([0-9]{1,5}[-,])*[0-9]{1,5}$")

EXIT_WORDS = ("exit", "quit")


def verify_input(value: str, pattern: Pattern, name: str) -> str:
    """Check value against pattern and return it stripped"""
    value = (value or "").strip()

    if pattern.match(value):
        logger.debug(f"Valid input: {value}")
        return value
    if value.lower() in EXIT_WORDS:
        raise UserExit()
    raise InvalidInputError(name, value)


def parse_prefix(text: str) -> int:
    """Parse a prefix length, with or without a leading slash"""
    value = verify_input(text, NETWORK_CIDR_PATTERN, "network cidr")
    return int(value.lstrip("/"))


def _parse_port(text: str, name: str) -> int:
    try:
        port = int(text)
    except ValueError:
        raise PortParseError(f"A port that was deemed valid has failed to parse: {name}={text!r}") from None
    if not 0 <= port <= MAX_PORT:
        raise PortParseError(f"Port {port} is outside 0-{MAX_PORT}")
    return port


def parse_ports(spec: str) -> List[int]:
    """
    Parse a port specification into an ordered list of ports.
    Supports:
    - Single ports: "80"
    - Ranges: "1-1024" (both ends included)
    - Comma-separated and mixed: "22,80,8000-8010"
    Order and duplicates are kept as given.
    """
    spec = verify_input(spec, PORT_LIST_PATTERN, "port input")

    ports: List[int] = []
    for part in spec.split(","):
        if "-" in part:
            bounds = part.split("-")
            if len(bounds) != 2:
                raise PortParseError(f"Invalid port range: {part}")
            start = _parse_port(bounds[0], "port_range_start")
            end = _parse_port(bounds[1], "port_range_end")
            if start > end:
                raise PortParseError(f"Invalid port range: {part} (start is after end)")
            for port in range(start, end + 1):
                logger.debug(f"Parsing port: {port}")
                ports.append(port)
        else:
            logger.debug(f"Parsing port: {part}")
            ports.append(_parse_port(part, "port"))

    return ports

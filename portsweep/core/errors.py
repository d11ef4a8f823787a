"""
PortSweep error types
Construction and input errors carry a numeric code the CLI uses as exit status
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Numeric error codes reported to the user"""
    INVALID_VARIABLE = 3001
    INVALID_INPUT = 3002
    IMPOSSIBLE_CIDR = 3003
    VALID_PORT_PARSE_FAILURE = 3004
    SOCKET_ADDRESS_FAILED_TO_SET = 9996


class PortSweepError(Exception):
    """Base class for errors that abort a run before probing starts"""

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(self, detail: str, code: Optional[ErrorCode] = None):
        if code is not None:
            self.code = code
        self.detail = detail
        super().__init__(f"{int(self.code)} : {detail}")


class InvalidInputError(PortSweepError):
    """A user supplied value did not match its expected shape"""

    code = ErrorCode.INVALID_VARIABLE

    def __init__(self, name: str, value: str = ""):
        self.name = name
        self.value = value
        super().__init__(f"An invalid value was found for {name!r}: {value!r}")


class UserExit(Exception):
    """User asked to leave an interactive prompt"""


class InvalidNetworkConfiguration(PortSweepError):
    """Base address and prefix length do not form a CIDR block"""

    code = ErrorCode.IMPOSSIBLE_CIDR


class PortParseError(PortSweepError):
    """A port specification could not be turned into port numbers"""

    code = ErrorCode.VALID_PORT_PARSE_FAILURE


class EndpointConstructionFailed(PortSweepError):
    """An (address, port) pair could not be turned into a socket endpoint"""

    code = ErrorCode.SOCKET_ADDRESS_FAILED_TO_SET

"""
PortSweep Core Scanner Engine
Concurrent TCP connect probing with streamed, completion-ordered results
"""

import asyncio
import errno
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Iterable, List, Optional, Sequence, Union

from portsweep.core.network import NetworkRange, Target, build_targets

logger = logging.getLogger(__name__)

# Per-attempt connect deadline in seconds
PROBE_TIMEOUT = 3.0

# POSIX errno values plus their Winsock equivalents
REFUSED_ERRNOS = {errno.ECONNREFUSED, 10061}
UNREACHABLE_ERRNOS = {errno.EHOSTUNREACH, errno.ENETUNREACH, 10065, 10051}


class ConnectionStatus(Enum):
    """Outcome of a single connection attempt"""
    OPEN = "open"
    REFUSED = "refused"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class ScanResult:
    """Classified outcome for one target"""
    target: Target
    status: ConnectionStatus

    def __str__(self) -> str:
        return f"{self.target} - {self.status.value.capitalize()}"


@dataclass(frozen=True)
class TaskFailure:
    """A probe task that ended abnormally instead of returning a result"""
    target: Target
    error: BaseException

    def __str__(self) -> str:
        return f"{self.target} - {type(self.error).__name__}: {self.error}"


@dataclass
class ScanStats:
    """Target and completion counts for one run"""
    submitted: int = 0
    completed: int = 0


ScanEvent = Union[ScanResult, TaskFailure]
Probe = Callable[[Target, float], Awaitable[ScanResult]]


@dataclass
class ScanOptions:
    """Configuration options for scanning"""
    timeout: float = PROBE_TIMEOUT
    max_concurrency: Optional[int] = None  # None means one in-flight probe per target

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")


def classify_error(exc: BaseException) -> ConnectionStatus:
    """Map an error raised by a connection attempt to a status.

    Errors that are neither a refusal nor an unreachable host or network
    are reported as TIMEOUT.
    """
    if isinstance(exc, asyncio.TimeoutError):
        return ConnectionStatus.TIMEOUT
    if isinstance(exc, ConnectionRefusedError):
        return ConnectionStatus.REFUSED

    code = getattr(exc, "errno", None)
    if code in REFUSED_ERRNOS:
        return ConnectionStatus.REFUSED
    if code in UNREACHABLE_ERRNOS:
        return ConnectionStatus.UNREACHABLE
    return ConnectionStatus.TIMEOUT


async def open_socket(endpoint) -> socket.socket:
    """Connect a non-blocking TCP socket to endpoint and return it"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setblocking(False)
    try:
        await asyncio.get_running_loop().sock_connect(sock, endpoint)
    except BaseException:
        sock.close()
        raise
    return sock


async def probe_target(target: Target, timeout: float = PROBE_TIMEOUT) -> ScanResult:
    """Attempt one TCP connection to target and classify the outcome.

    The connect runs in its own task so that a socket which connects right
    as the deadline expires is still closed before returning.
    """
    logger.debug(f"Probing {target}")
    connect = asyncio.create_task(open_socket(target.endpoint))
    try:
        done, _ = await asyncio.wait({connect}, timeout=timeout)
    finally:
        if not connect.done():
            connect.cancel()
            await asyncio.wait({connect})

    if connect not in done:
        if not connect.cancelled() and connect.exception() is None:
            connect.result().close()
        return ScanResult(target=target, status=ConnectionStatus.TIMEOUT)

    try:
        sock = connect.result()
    except OSError as e:
        status = classify_error(e)
        logger.debug(f"Connect to {target} failed: {e}")
    else:
        sock.close()
        status = ConnectionStatus.OPEN

    return ScanResult(target=target, status=status)


class Scanner:
    """Fans out one probe task per target and streams results as they finish"""

    def __init__(self, options: Optional[ScanOptions] = None, probe: Probe = probe_target):
        self.options = options or ScanOptions()
        self.probe = probe
        self.stats = ScanStats()

    @property
    def submitted(self) -> int:
        return self.stats.submitted

    @property
    def completed(self) -> int:
        return self.stats.completed

    async def _run_probe(self, target: Target, semaphore: Optional[asyncio.Semaphore]) -> ScanResult:
        if semaphore is None:
            return await self.probe(target, self.options.timeout)
        async with semaphore:
            return await self.probe(target, self.options.timeout)

    async def stream(self, targets: Iterable[Target]) -> AsyncIterator[ScanEvent]:
        """Yield one ScanResult or TaskFailure per target, in completion order.

        The target sequence is fully built before the first task is
        spawned, so a construction error propagates before any probing
        starts. The generator ends once every task has reported.
        """
        pending_targets: List[Target] = list(targets)

        stats = ScanStats(submitted=len(pending_targets))

        semaphore = None
        if self.options.max_concurrency is not None:
            semaphore = asyncio.Semaphore(self.options.max_concurrency)

        done: asyncio.Queue = asyncio.Queue()
        tasks = {}
        for target in pending_targets:
            task = asyncio.create_task(self._run_probe(target, semaphore))
            tasks[task] = target
            task.add_done_callback(done.put_nowait)

        logger.info(f"Starting scan of {stats.submitted} targets")

        try:
            while tasks:
                task = await done.get()
                target = tasks.pop(task)
                stats.completed += 1

                if task.cancelled():
                    yield TaskFailure(target, asyncio.CancelledError(f"probe of {target} was cancelled"))
                elif task.exception() is not None:
                    logger.debug(f"Probe task for {target} failed: {task.exception()!r}")
                    yield TaskFailure(target, task.exception())
                else:
                    yield task.result()
        finally:
            # Only non-empty when the consumer stopped iterating early
            for task in tasks:
                task.cancel()
            self.stats = stats

        logger.info(f"Scan of {stats.submitted} targets completed")

    async def scan(self, targets: Iterable[Target]) -> List[ScanEvent]:
        """Run a scan and collect every event"""
        return [event async for event in self.stream(targets)]

    def scan_network(self, network_range: NetworkRange, ports: Sequence[int]) -> AsyncIterator[ScanEvent]:
        """Stream events for every port of every address in network_range"""
        total = len(network_range) * len(ports)
        if total > 100000:
            logger.warning(f"Large scan detected: {len(network_range)} hosts × {len(ports)} ports = {total:,} probes")
        return self.stream(build_targets(network_range, ports))

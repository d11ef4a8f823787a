#!/usr/bin/env python3
"""
PortSweep CLI - Command Line Interface
Reads a network range and port list, then streams TCP reachability results
"""

import asyncio
import logging
import sys
import time
from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from portsweep.core.errors import PortSweepError, UserExit
from portsweep.core.network import NetworkRange
from portsweep.core.scanner import Scanner, ScanOptions
from portsweep.utils.input import NETWORK_ID_PATTERN, parse_ports, parse_prefix, verify_input
from portsweep.utils.output import ResultReporter, Verbosity

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: int):
    """Setup logging based on verbosity level; one -v enables per-target debug lines"""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    # basicConfig leaves the level alone when handlers already exist
    logging.getLogger().setLevel(level)


def reporter_verbosity(verbose: int, quiet: bool) -> Verbosity:
    """Pick the reporter level from -v/-q flags"""
    if quiet:
        return Verbosity.INFO
    if verbose:
        return Verbosity.DEBUG
    return Verbosity.ERROR


def acquire(value: Optional[str], prompt: str) -> str:
    """Use the option value if given, otherwise ask for it"""
    if value is not None:
        return value
    return click.prompt(prompt, prompt_suffix="\n> ", default="", show_default=False)


def display_banner():
    """Display PortSweep banner"""
    console.print(Panel("PortSweep\nConcurrent TCP Reachability Prober", style="bold blue"))


async def run_scan(scanner: Scanner, network_range: NetworkRange, ports, reporter: ResultReporter):
    """Stream every event of the scan into the reporter"""
    reporter.emit("Waiting for results", Verbosity.INFO)
    async for event in scanner.scan_network(network_range, ports):
        reporter.report(event)
    reporter.emit("Scan has completed", Verbosity.INFO)


@click.command()
@click.option('-n', '--network', help='Network id, the base IPv4 address of the block (e.g. 192.168.1.0)')
@click.option('-c', '--cidr', help='Prefix length of the block (e.g. 24 or /24)')
@click.option('-p', '--ports', help='Ports to probe (e.g. 22,80,8000-8010; ranges include both ends)')
@click.option('--max-concurrency', type=click.IntRange(min=1),
              help='Cap on in-flight connection attempts (default: one per target)')
@click.option('-v', '--verbose', count=True, help='Increase verbosity level')
@click.option('-q', '--quiet', is_flag=True, help='Only report open ports')
@click.pass_context
def main(ctx, **options):
    """
    PortSweep - Concurrent TCP Reachability Prober

    Values not given as options are prompted for. Answer a prompt with
    "exit" or "quit" to leave.

    Examples:
      portsweep -n 192.168.1.0 -c 24 -p 22,80,443
      portsweep --network 10.0.0.0 --cidr /30 --ports 8000-8010 -v
    """
    setup_logging(options['verbose'])
    verbosity = reporter_verbosity(options['verbose'], options['quiet'])
    reporter = ResultReporter(verbosity, console=console, err_console=err_console)

    if not options['quiet']:
        display_banner()

    try:
        network_id = verify_input(
            acquire(options['network'], "Input a valid network id"), NETWORK_ID_PATTERN, "network id"
        )
        prefix = parse_prefix(acquire(options['cidr'], "Input a valid network cidr"))
        ports = parse_ports(acquire(options['ports'], "Input a range of ports"))
        network_range = NetworkRange.build(network_id, prefix)
    except UserExit:
        console.print("Exiting")
        ctx.exit(0)
    except PortSweepError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        ctx.exit(int(e.code))

    scanner = Scanner(ScanOptions(max_concurrency=options['max_concurrency']))

    start_time = time.time()
    reporter.emit(f"Starting PortSweep at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", Verbosity.DEBUG)
    reporter.emit(f"Network: {network_range} ({len(network_range)} addresses)", Verbosity.DEBUG)
    reporter.emit(f"Ports: {len(ports)}", Verbosity.DEBUG)

    try:
        asyncio.run(run_scan(scanner, network_range, ports, reporter))
    except PortSweepError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        ctx.exit(int(e.code))
    except KeyboardInterrupt:
        err_console.print("\n[bold red]Scan interrupted by user[/bold red]")
        sys.exit(1)

    if not options['quiet']:
        reporter.print_summary()
        console.print(f"Done: {reporter.total} probes in {time.time() - start_time:.2f}s")


if __name__ == '__main__':
    main()

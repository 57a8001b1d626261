import argparse
import asyncio
import sys

from netspawner.errors import NetSpawnerError
from netspawner.models.schemas import CliArgs
from netspawner.services.config_service import tool_dir
from netspawner.services.network_service import NetworkService
from netspawner.utils.logging_config import setup_logging

USAGE = """NetSpawner - local blockchain network launcher

Usage:
  netspawner [flags] <command>

Commands:
  resume   Resume network from the same point
  reset    Reset and start the network from init (progress drop)
  help     Show this help

Flags:
  -h, -help   Show help and exit

Examples:
  netspawner resume
  netspawner reset
  netspawner -h
"""

COMMANDS = {
    "resume": NetworkService.resume,
    "reset": NetworkService.reset,
}


def usage(stream=None):
    (stream or sys.stderr).write(USAGE)


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        usage()
        self.exit(2, f"Error: {message}\n")


def parse_args(argv=None) -> CliArgs:
    parser = _Parser(prog="netspawner", add_help=False)
    parser.add_argument("-h", "-help", "--help", dest="show_help", action="store_true")
    parser.add_argument("command", nargs="?")
    ns = parser.parse_args(argv)
    return CliArgs(command=ns.command.lower() if ns.command else None, show_help=ns.show_help)


async def run(command: str, service: NetworkService):
    return await COMMANDS[command](service)


def main(argv=None) -> int:
    args = parse_args(argv)

    if args.show_help or args.command == "help":
        usage()
        return 0

    if args.command is None:
        usage()
        return 2

    if args.command not in COMMANDS:
        print(f"Error: unknown command: {args.command!r}", file=sys.stderr)
        return 2

    setup_logging()
    try:
        asyncio.run(run(args.command, NetworkService(tool_dir())))
    except NetSpawnerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0

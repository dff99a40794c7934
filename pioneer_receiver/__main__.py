#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import asyncio
import logging
import dotenv
from signal import SIGINT, SIGTERM

from pioneer_receiver.internal_types import *
from pioneer_receiver import (
    __version__ as pkg_version,
    DEFAULT_PORT,
    PioneerReceiverSession,
    PioneerReceiverClientConfig,
    DecodedEvent,
    pioneer_receiver_connect,
    full_class_name,
  )
from pioneer_receiver.protocol import listening_modes

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    def get_client_config(self) -> PioneerReceiverClientConfig:
        config_file: Optional[str] = self._args.config_file
        base_config: Optional[PioneerReceiverClientConfig] = None
        if config_file is not None:
            base_config = PioneerReceiverClientConfig.from_config_file(config_file)
        return PioneerReceiverClientConfig(
            default_host=self._args.host,
            default_port=self._args.port,
            trace=True if self._args.trace else None,
            base_config=base_config,
          )

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    async def cmd_emulator(self) -> int:
        bind_addr: str = self._args.bind
        port: int = self._args.port
        from pioneer_receiver.emulator import PioneerReceiverEmulator
        emulator = PioneerReceiverEmulator(
            bind_addr=bind_addr,
            port=port,
          )
        def sigint_cleanup() -> None:
            emulator.close(CmdExitError(1, "Emulator terminated with SIGINT or SIGTERM"))
        loop = asyncio.get_running_loop()
        for signal in (SIGINT, SIGTERM):
            loop.add_signal_handler(signal, sigint_cleanup)
        try:
            await emulator.run()
        finally:
            for signal in (SIGINT, SIGTERM):
                loop.remove_signal_handler(signal)
        return 0

    async def cmd_monitor(self) -> int:
        session = PioneerReceiverSession(config=self.get_client_config())
        def on_event(event: DecodedEvent) -> None:
            print(json.dumps(event.to_jsonable()), flush=True)
        session.on("event", on_event)
        async with await pioneer_receiver_connect(session=session) as session:
            loop = asyncio.get_running_loop()
            for signal in (SIGINT, SIGTERM):
                loop.add_signal_handler(signal, session.close)
            try:
                await session.wait_closed()
            finally:
                for signal in (SIGINT, SIGTERM):
                    loop.remove_signal_handler(signal)
        return 0

    def run_exec_command(self, session: PioneerReceiverSession, cmd_name: str) -> Optional[float]:
        """Sends a single named command.

        Returns:
            A number of seconds to pause instead of sending anything, or None.
        """
        if cmd_name.startswith("pause"):
            try:
                return float(cmd_name[5:])
            except ValueError as e:
                raise CmdExitError(1, f"Invalid pause command: {cmd_name!r}") from e
        arg: Optional[str] = None
        if '=' in cmd_name:
            cmd_name, arg = cmd_name.split('=', 1)
        if arg is None:
            simple_commands: Dict[str, Callable[[], None]] = {
                "on": lambda: session.power(True),
                "off": lambda: session.power(False),
                "zon": lambda: session.zpower(True),
                "zoff": lambda: session.zpower(False),
                "mute": lambda: session.mute(True),
                "unmute": lambda: session.mute(False),
                "zmute": lambda: session.zmute(True),
                "zunmute": lambda: session.zmute(False),
                "up": session.volume_up,
                "down": session.volume_down,
                "zup": session.zvolume_up,
                "zdown": session.zvolume_down,
                "query": session.query,
              }
            if not cmd_name in simple_commands:
                raise CmdExitError(1, f"Unknown command: {cmd_name!r}")
            simple_commands[cmd_name]()
        elif cmd_name == "volume":
            session.volume(float(arg))
        elif cmd_name == "zvolume":
            session.zvolume(float(arg))
        elif cmd_name == "input":
            session.select_input(arg)
        elif cmd_name == "zinput":
            session.select_zone_input(arg)
        elif cmd_name == "mode":
            if arg in listening_modes:
                session.listening_mode(listening_modes[arg].ordinal)
            else:
                session.listening_mode(int(arg))
        elif cmd_name == "raw":
            session.send_raw(arg)
        elif cmd_name == "button":
            session.press_hmg_button(arg)
        else:
            raise CmdExitError(1, f"Unknown command: {cmd_name!r}")
        return None

    async def cmd_exec(self) -> int:
        continue_on_error: bool = self._args.continue_on_error
        settle_secs: float = self._args.settle
        cmd_names: List[str] = self._args.exec_command
        if len(cmd_names) == 0:
            raise CmdExitError(1, "No receiver commands specified")

        session = PioneerReceiverSession(config=self.get_client_config())
        results: List[JsonableDict] = []
        current: JsonableDict = dict(name="<connect>", events=[])
        results.append(current)
        def on_event(event: DecodedEvent) -> None:
            events = current["events"]
            assert isinstance(events, list)
            events.append(event.to_jsonable())
        session.on("event", on_event)
        try:
            async with await pioneer_receiver_connect(session=session) as session:
                await session.wait_connected()
                await asyncio.sleep(settle_secs)
                for cmd_name in cmd_names:
                    current = dict(name=cmd_name, events=[])
                    results.append(current)
                    try:
                        pause_secs = self.run_exec_command(session, cmd_name)
                        await asyncio.sleep(settle_secs if pause_secs is None else pause_secs)
                    except Exception as exc:
                        error_classname = full_class_name(exc)
                        error_message = str(exc)
                        if error_message == "":
                            error_message = error_classname
                        current.update(
                            error=error_classname,
                            error_message=error_message,
                          )
                        if not continue_on_error:
                            raise
        finally:
            print(json.dumps(results, indent=2))
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the pioneer-receiver command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(description="Control a Pioneer receiver.")

        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')

        def add_client_args(subparser: argparse.ArgumentParser) -> None:
            subparser.add_argument('--host', default=None,
                                help='''The receiver host address, optionally with ":<port>". Default: use env var PIONEER_RECEIVER_HOST.''')
            subparser.add_argument("--port", default=None, type=int,
                help=f"Default receiver port number to connect to. Default: PIONEER_RECEIVER_PORT or {DEFAULT_PORT}")
            subparser.add_argument('-c', '--config-file', default=None,
                                help='''A JSON client configuration file. Default: use env var PIONEER_RECEIVER_CONFIG_FILE.''')
            subparser.add_argument('--trace', action='store_true', default=False,
                                help='Log every decoded line and sent command at INFO level.')

        # ======================= monitor

        parser_monitor = subparsers.add_parser('monitor', description="Connect to the receiver and print events as JSON lines until disconnected.")
        add_client_args(parser_monitor)
        parser_monitor.set_defaults(func=self.cmd_monitor)

        # ======================= exec

        parser_exec = subparsers.add_parser('exec', description="Execute one or more commands on the receiver.")
        add_client_args(parser_exec)
        parser_exec.add_argument('--continue', dest="continue_on_error", action='store_true', default=False,
                            help='Continue running commands on error. Default: False')
        parser_exec.add_argument('--settle', default=0.5, type=float,
                            help='Seconds to collect events after each command. Default: 0.5')
        parser_exec.add_argument('exec_command', nargs=argparse.REMAINDER,
                            help='''One or more named commands to execute; e.g., "on", "volume=-40", "input=hdmi_1", "pause2".''')
        parser_exec.set_defaults(func=self.cmd_exec)

        # ======================= emulator

        parser_emulator = subparsers.add_parser('emulator', description="Run a receiver emulator for testing purposes.")
        parser_emulator.add_argument("--port", default=DEFAULT_PORT, type=int,
            help=f"Port number to listen on. Default: {DEFAULT_PORT}")
        parser_emulator.add_argument('-b', '--bind', default="0.0.0.0",
                            help='''The local unicast IP address to bind to. Default: 0.0.0.0.''')
        parser_emulator.set_defaults(func=self.cmd_emulator)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            ex_desc = str(ex)
            if len(ex_desc) == 0:
                ex_desc = ex.__class__.__name__
            print(f"pioneer-receiver: error: {ex_desc}", file=sys.stderr)
        except BaseException as ex:
            print(f"pioneer-receiver: Unhandled exception {ex.__class__.__name__}: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        return asyncio.run(self.arun())

def run(argv: Optional[Sequence[str]]=None) -> int:
    dotenv.load_dotenv()
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())

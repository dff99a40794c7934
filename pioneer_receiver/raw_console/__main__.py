#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import asyncio
import logging
import dotenv
import aioconsole
import colorama # type: ignore[import]
from colorama import Fore, Style
import traceback

from pioneer_receiver.internal_types import *
from pioneer_receiver.pkg_logging import logger

from pioneer_receiver.client import PioneerReceiverSession, PioneerReceiverClientConfig, pioneer_receiver_connect
from pioneer_receiver.protocol import RawLine, RawCommand, DecodedEvent, Unclassified

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

class RawConsoleSession(PioneerReceiverSession):
    """A session that echoes every received line, with its decoded event, to the console."""
    handler: CommandHandler

    def __init__(self, handler: CommandHandler, config: Optional[PioneerReceiverClientConfig]=None):
        super().__init__(config=config)
        self.handler = handler

    def handle_line(self, line: RawLine) -> Optional[DecodedEvent]:
        event = super().handle_line(line)
        self.handler.print_received(line, event)
        return event

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True
    _session: Optional[RawConsoleSession] = None
    _console_task: Optional[asyncio.Task] = None
    _colorize_stdout: bool = True
    _client_config: Optional[PioneerReceiverClientConfig] = None

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    def ocolor(self, codes: str) -> str:
        return codes if self._colorize_stdout else ""

    def get_client_config(self) -> PioneerReceiverClientConfig:
        if self._client_config is None:
            self._client_config = PioneerReceiverClientConfig(
                default_host=self._args.host,
                default_port=self._args.port,
              )
        return self._client_config

    def print_received(self, line: RawLine, event: Optional[DecodedEvent]) -> None:
        if not line.is_valid:
            print(f"\r{' '*20}    <- {self.ocolor(Fore.RED)}Invalid line {line.raw_data!r}{self.ocolor(Style.RESET_ALL)}")
            return
        text = line.text
        if text == "":
            return
        if event is None:
            annotation = ""
        elif isinstance(event, Unclassified):
            annotation = f"  {self.ocolor(Fore.YELLOW)}(unclassified){self.ocolor(Style.RESET_ALL)}"
        else:
            args = ", ".join(repr(arg) for arg in event.args())
            annotation = f"  {self.ocolor(Fore.CYAN)}{event.name}({args}){self.ocolor(Style.RESET_ALL)}"
        print(f"\r{' '*20}    <- {self.ocolor(Fore.BLUE)}{text}{self.ocolor(Style.RESET_ALL)}{annotation}")

    async def handle_console_input(self, session: RawConsoleSession) -> None:
        try:
            while True:
                raw_data = await aioconsole.ainput(">>> ")
                if raw_data == "":
                    continue
                if raw_data == "exit" or raw_data == "quit" or raw_data == "q":
                    break
                command: Optional[RawCommand] = None
                try:
                    command = RawCommand(raw_data)
                    command.encode()
                except Exception as e:
                    command = None
                    if self._provide_traceback:
                        print(f"\r{self.ocolor(Fore.RED)}Invalid command: {e}\n{traceback.format_exc()}{self.ocolor(Style.RESET_ALL)}")
                    else:
                        print(f"\r{self.ocolor(Fore.RED)}Invalid command: {e}{self.ocolor(Style.RESET_ALL)}")
                if command is not None:
                    print(f"\r{self.ocolor(Fore.GREEN)}{raw_data:<20} ->{self.ocolor(Style.RESET_ALL)}")
                    session.send(command)
                ### allow a response to be printed before the next prompt
                await asyncio.sleep(0.3)
        except EOFError:
            print()
        except Exception as e:
            logger.debug("Exception in console input handler", exc_info=e)
            raise
        finally:
            logger.debug("Console input handler exiting")
            session.close()

    async def cmd_bare(self) -> int:
        session = RawConsoleSession(self, config=self.get_client_config())
        async with await pioneer_receiver_connect(session=session):
            self._session = session
            self._console_task = asyncio.create_task(self.handle_console_input(session))
            try:
                await session.wait_closed()
            finally:
                logger.debug("Command exiting")
                self._console_task.cancel()
                try:
                    await self._console_task
                except asyncio.CancelledError:
                    pass

        return 0

    async def arun(self) -> int:
        """Run the raw console tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(description="Send raw protocol lines to a Pioneer receiver and display its responses.")

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.add_argument('--no-color', dest='no_color', action='store_true', default=False,
                            help='Do not colorize output')
        parser.add_argument('-p', '--port', default=None, type=int,
                            help='''The port number to connect to. Default: PIONEER_RECEIVER_PORT or 23''')
        parser.add_argument('host', default=None, nargs='?',
                            help='''The LAN host name or IP address of the receiver. Default: PIONEER_RECEIVER_HOST''')

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
            self._colorize_stdout = not args.no_color and sys.stdout.isatty()
            rc = await self.cmd_bare()
            logging.debug(f"Command returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"raw_console: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"raw_console: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        colorama.just_fix_windows_console()
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

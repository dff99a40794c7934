# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Pioneer receiver emulator.

Provides a simple emulation of a Pioneer receiver on TCP/IP. Queries are answered
to the session that sent them; state changes are reported to every connected
session, as the real receiver does.
"""

from __future__ import annotations

import asyncio
import re

from ..internal_types import *
from ..pkg_logging import logger
from ..protocol import (
    RawLine,
    inputs,
    input_ids,
    ordinal_to_listening_mode,
  )
from ..protocol.command import MAX_VOLUME_LEVEL, MAX_ZONE_VOLUME_LEVEL
from ..constants import DEFAULT_PORT
from ..exceptions import PioneerReceiverError

from .session import PioneerReceiverEmulatorSession

COMMAND_ERROR = "E04"
"""Response to an unrecognized command."""

PARAMETER_ERROR = "E06"
"""Response to a command with an out-of-range parameter."""

_VOLUME_SET_RE = re.compile(r'^(\d{3})VL$')
_ZONE_VOLUME_SET_RE = re.compile(r'^(\d{2})ZV$')
_INPUT_SET_RE = re.compile(r'^(\d{2})FN$')
_ZONE_INPUT_SET_RE = re.compile(r'^(\d{1,2})ZS$')
_LISTENING_MODE_SET_RE = re.compile(r'^(\d{4})SR$')
_INPUT_NAME_QUERY_RE = re.compile(r'^\?RGB(\d{2})$')
_HMG_BUTTON_RE = re.compile(r'^(\d{2})NW$')

class PioneerReceiverEmulator(AsyncContextManager['PioneerReceiverEmulator']):
    bind_addr: str
    port: int
    sessions: Dict[int, PioneerReceiverEmulatorSession]
    next_session_id: int = 0
    server: Optional[asyncio.Server] = None
    final_result: asyncio.Future[None]

    power: bool
    zone_power: bool
    volume_level: int
    zone_volume_level: int
    mute: bool
    zone_mute: bool
    input_id: int
    zone_input_id: int
    listening_mode: int
    input_names: Dict[int, str]

    received_lines: List[str]
    """Every non-empty line received, in order. Useful for tests."""

    def __init__(
            self,
            bind_addr: Optional[str] = None,
            port: int = DEFAULT_PORT,
            initial_power: bool = False,
            initial_volume_level: int = 121,
            initial_zone_volume_level: int = 61,
            initial_input: Union[int, str] = "dvd",
            initial_listening_mode: int = 152,
            input_names: Optional[Mapping[int, str]] = None,
          ):
        """Creates an emulator. Must be called with an event loop running.

        Args:
            bind_addr: The local address to listen on. Defaults to '0.0.0.0'.
            port: The port to listen on. 0 selects a free port; see bound_port.
            initial_power: The initial main zone power state.
            initial_volume_level: The initial main zone wire volume level (0-185).
            initial_zone_volume_level: The initial zone 2 wire volume level (0-81).
            initial_input: The initial input, by id or symbolic name.
            initial_listening_mode: The initial listening mode ordinal.
            input_names: Display names reported for inputs. Inputs not included
                report their upper-cased symbolic name.
        """
        self.bind_addr = '0.0.0.0' if bind_addr is None else bind_addr
        self.port = port
        self.sessions = {}
        self.final_result = asyncio.get_running_loop().create_future()
        self.received_lines = []
        if isinstance(initial_input, str):
            if not initial_input in inputs:
                raise PioneerReceiverError(f"Unknown input {initial_input!r}")
            initial_input = inputs[initial_input]
        if ordinal_to_listening_mode(initial_listening_mode) is None:
            raise PioneerReceiverError(f"Unknown listening mode {initial_listening_mode}")
        self.power = initial_power
        self.zone_power = False
        self.volume_level = initial_volume_level
        self.zone_volume_level = initial_zone_volume_level
        self.mute = False
        self.zone_mute = False
        self.input_id = initial_input
        self.zone_input_id = initial_input
        self.listening_mode = initial_listening_mode
        self.input_names = { input_id: symbol.upper() for symbol, input_id in inputs.items() }
        if input_names is not None:
            self.input_names.update(input_names)

    @property
    def bound_port(self) -> int:
        """The port actually being listened on. Differs from port if port was 0."""
        if self.server is None or len(self.server.sockets) == 0:
            raise PioneerReceiverError("Emulator is not listening")
        return self.server.sockets[0].getsockname()[1]

    def alloc_session_id(self, session: PioneerReceiverEmulatorSession) -> int:
        result = self.next_session_id
        self.next_session_id += 1
        self.sessions[result] = session
        return result

    def free_session_id(self, session_id: int) -> None:
        self.sessions.pop(session_id, None)

    def broadcast(self, text: str) -> None:
        """Sends a status line to every connected session."""
        for session in list(self.sessions.values()):
            session.write_line(text)

    # ----------------------------------------------------------------- status lines

    def power_status(self) -> str:
        return "PWR0" if self.power else "PWR1"

    def zone_power_status(self) -> str:
        return "APR0" if self.zone_power else "APR1"

    def volume_status(self) -> str:
        return f"VOL{self.volume_level:03d}"

    def zone_volume_status(self) -> str:
        return f"ZV{self.zone_volume_level:02d}"

    def mute_status(self) -> str:
        return "MUT0" if self.mute else "MUT1"

    def zone_mute_status(self) -> str:
        return "Z2MUT0" if self.zone_mute else "Z2MUT1"

    def input_status(self) -> str:
        return f"FN{self.input_id:02d}"

    def zone_input_status(self) -> str:
        return f"Z2F{self.zone_input_id:02d}"

    def display_listening_mode_status(self) -> str:
        listening_mode = ordinal_to_listening_mode(self.listening_mode)
        assert listening_mode is not None
        return f"LM{min(listening_mode.display_codes):04X}"

    def input_name_status(self, input_id: int) -> str:
        # flag digit 1 = user-assigned name
        return f"RGB{input_id:02d}1{self.input_names.get(input_id, '')}"

    # ----------------------------------------------------------------- command handling

    def on_line_received(self, session: PioneerReceiverEmulatorSession, line: RawLine) -> None:
        """Called when a line is received from a session."""
        text = line.text
        if len(text) == 0:
            # wake
            return
        self.received_lines.append(text)
        logger.debug(f"{session}: Emulator: received command: {text!r}")
        response = self.handle_command(session, text)
        if response is not None:
            session.write_line(response)

    def handle_command(self, session: PioneerReceiverEmulatorSession, text: str) -> Optional[str]:
        """Handle a single command line.

        Returns:
            A line to send back to the requesting session only, or None. State changes
            are broadcast to all sessions before returning.
        """
        queries: Dict[str, Callable[[], str]] = {
            "?P": self.power_status,
            "?AP": self.zone_power_status,
            "?V": self.volume_status,
            "?ZV": self.zone_volume_status,
            "?M": self.mute_status,
            "?Z2M": self.zone_mute_status,
            "?F": self.input_status,
            "?ZS": self.zone_input_status,
            "?L": self.display_listening_mode_status,
          }
        if text in queries:
            return queries[text]()

        if text in ("PO", "PF"):
            self.power = text == "PO"
            self.broadcast(self.power_status())
        elif text in ("APO", "APF"):
            self.zone_power = text == "APO"
            self.broadcast(self.zone_power_status())
        elif text in ("MO", "MF"):
            self.mute = text == "MO"
            self.broadcast(self.mute_status())
        elif text in ("Z2MO", "Z2MF"):
            self.zone_mute = text == "Z2MO"
            self.broadcast(self.zone_mute_status())
        elif text in ("VU", "VD"):
            step = 1 if text == "VU" else -1
            self.volume_level = max(0, min(MAX_VOLUME_LEVEL, self.volume_level + step))
            self.broadcast(self.volume_status())
        elif text in ("ZU", "ZD"):
            step = 1 if text == "ZU" else -1
            self.zone_volume_level = max(0, min(MAX_ZONE_VOLUME_LEVEL, self.zone_volume_level + step))
            self.broadcast(self.zone_volume_status())
        else:
            return self._handle_parameterized_command(text)
        return None

    def _handle_parameterized_command(self, text: str) -> Optional[str]:
        m = _INPUT_NAME_QUERY_RE.match(text)
        if m is not None:
            input_id = int(m.group(1))
            if input_id not in input_ids:
                return PARAMETER_ERROR
            return self.input_name_status(input_id)

        m = _VOLUME_SET_RE.match(text)
        if m is not None:
            level = int(m.group(1))
            if level > MAX_VOLUME_LEVEL:
                return PARAMETER_ERROR
            self.volume_level = level
            self.broadcast(self.volume_status())
            return None

        m = _ZONE_VOLUME_SET_RE.match(text)
        if m is not None:
            level = int(m.group(1))
            if level > MAX_ZONE_VOLUME_LEVEL:
                return PARAMETER_ERROR
            self.zone_volume_level = level
            self.broadcast(self.zone_volume_status())
            return None

        m = _INPUT_SET_RE.match(text)
        if m is not None:
            input_id = int(m.group(1))
            if input_id not in input_ids:
                return PARAMETER_ERROR
            self.input_id = input_id
            self.broadcast(self.input_status())
            return None

        m = _ZONE_INPUT_SET_RE.match(text)
        if m is not None:
            input_id = int(m.group(1))
            if input_id not in input_ids:
                return PARAMETER_ERROR
            self.zone_input_id = input_id
            self.broadcast(self.zone_input_status())
            return None

        m = _LISTENING_MODE_SET_RE.match(text)
        if m is not None:
            mode = int(m.group(1))
            if ordinal_to_listening_mode(mode) is None:
                return PARAMETER_ERROR
            self.listening_mode = mode
            self.broadcast(f"SR{mode:04d}")
            return None

        if _HMG_BUTTON_RE.match(text) is not None:
            logger.debug(f"Emulator: HMG button {text[:2]} pressed")
            return None

        logger.debug(f"Emulator: unrecognized command {text!r}")
        return COMMAND_ERROR

    # ----------------------------------------------------------------- lifecycle

    async def finish_start(self) -> None:
        """Called after the socket is up and running.  Subclasses can override to do additional
           initialization."""
        pass

    async def run(self) -> None:
        """Runs the Emulator until it is closed."""
        async with self:
            await self.wait_closed()

    async def start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
            self.server = await loop.create_server(
                lambda: PioneerReceiverEmulatorSession(self),
                host=self.bind_addr,
                port=self.port)
            logger.debug(f"Emulator: Listening on {self.bind_addr}:{self.bound_port}")
            await self.server.start_serving()
            await self.finish_start()
        except BaseException as e:
            self.set_final_result(e)
            try:
                await self.wait_closed()
            except BaseException:
                pass
            raise

    def close(self, exc: Optional[BaseException]=None) -> None:
        """Stops the Emulator."""
        self.set_final_result(exc)

    def close_sessions(self) -> None:
        """Closes every client connection, as a receiver does when it loses power to its network interface."""
        for session in list(self.sessions.values()):
            session.close()

    async def wait_closed(self) -> None:
        """Waits for the emulator to be fully closed. Does not initiate shutdown.
           Does not raise an exception based on final status."""
        try:
            await self.final_result
        finally:
            if self.server is not None:
                server = self.server
                self.server = None
                try:
                    server.close()
                    self.close_sessions()
                finally:
                    await server.wait_closed()

    async def close_and_wait(self, exc: Optional[BaseException]=None) -> None:
        self.close(exc)
        await self.wait_closed()

    def set_final_result(self, exc: Optional[BaseException]=None) -> None:
        if not self.final_result.done():
            if exc is None:
                logger.debug(f"Emulator: Setting final result to success")
                self.final_result.set_result(None)
            else:
                logger.debug(f"Emulator: Setting final exception: {exc}")
                self.final_result.set_exception(exc)
            if self.server is not None:
                self.server.close()
            self.close_sessions()

    async def __aenter__(self) -> PioneerReceiverEmulator:
        await self.start()
        return self

    async def __aexit__(self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> None:
        self.set_final_result(exc)
        try:
            # ensure that final_result has been awaited
            await self.wait_closed()
        except Exception:
            pass

    def __str__(self) -> str:
        return f"PioneerReceiverEmulator(bind_addr='{self.bind_addr}', port={self.port})"

    def __repr__(self) -> str:
        return str(self)

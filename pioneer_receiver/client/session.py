# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Pioneer receiver client session.

Binds an asyncio transport to the protocol codec. Commands are encoded and
written to the transport; received bytes are framed into lines, decoded, and
re-emitted to observers as named events:

    connect                              after the connection is made and the initial queries are sent
    end                                  the receiver closed the connection
    error(exc)                           the connection failed
    power(on), zpower(on)
    volume(db), zvolume(db)
    mute(on), zmute(on)
    input(input_id, input_name), zinput(input_id, input_name)
    inputName(input_id, input_name)
    listening_mode_set(mode), listening_mode_display(mode)
    unclassified(raw_line)
    event(decoded_event)                 every decoded event, as a DecodedEvent object

The session never reconnects; a new session must be created for a new connection.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from enum import Enum

from ..internal_types import *
from ..exceptions import PioneerReceiverError
from ..constants import WAKE_DELAY, INPUT_NAME_QUERY_INTERVAL
from ..pkg_logging import logger, get_child_logger, release_child_logger
from ..protocol import (
    RawLine,
    LineFramer,
    ResponseDecoder,
    DecodedEvent,
    PioneerCommand,
    Wake,
    RawCommand,
    Direction,
    HmgButton,
    PowerSet,
    ZonePowerSet,
    MuteSet,
    ZoneMuteSet,
    VolumeSet,
    ZoneVolumeSet,
    VolumeStep,
    ZoneVolumeStep,
    InputSelect,
    ZoneInputSelect,
    ListeningModeSelect,
    InputNameQuery,
    HmgButtonPress,
    BulkStatusQuery,
    INPUT_QUERY,
    resolve_input_id,
    get_display_modes,
    get_input_modes,
  )
from .client_config import PioneerReceiverClientConfig
from .event_emitter import EventEmitter

class SessionState(Enum):
    UNCONNECTED = 0
    WAKING = 1
    CONNECTED = 2
    CLOSED = 3

_session_ids = itertools.count(1)

class PioneerReceiverSession(asyncio.Protocol, EventEmitter):
    """A single connection to a Pioneer receiver.

    Used as the protocol factory result for loop.create_connection(); see
    pioneer_receiver_connect().
    """

    session_id: int
    config: PioneerReceiverClientConfig
    transport: Optional[asyncio.Transport] = None
    state: SessionState = SessionState.UNCONNECTED
    framer: LineFramer
    decoder: ResponseDecoder
    logger: logging.Logger
    wake_delay: float
    input_name_query_interval: float
    peer_name: Any = None
    description: str

    _wake_timer: Optional[asyncio.TimerHandle] = None
    _deferred_handles: List[asyncio.TimerHandle]
    _end_emitted: bool = False
    _connected_event: asyncio.Event
    _closed_event: asyncio.Event
    _close_exc: Optional[BaseException] = None

    def __init__(
            self,
            config: Optional[PioneerReceiverClientConfig]=None,
            *,
            trace: Optional[bool]=None,
            debug_log: Optional[LogSink]=None,
            wake_delay: float=WAKE_DELAY,
            input_name_query_interval: float=INPUT_NAME_QUERY_INTERVAL,
          ) -> None:
        """Creates an unconnected session.

        Args:
            config: Client configuration. If None, a default configuration is used.
            trace: Overrides config.trace; if True, decoded lines and sent commands
                   are logged at INFO level.
            debug_log: Overrides config.debug_log; a callable that receives all log
                   messages produced by this session, in place of normal logging.
                   The sink is detached when the connection is lost.
            wake_delay: Delay between the wake line and the initial status queries, in seconds.
            input_name_query_interval: Spacing of the input name queries issued by query(),
                   in seconds.
        """
        asyncio.Protocol.__init__(self)
        EventEmitter.__init__(self)
        self.config = PioneerReceiverClientConfig(
            trace=trace,
            debug_log=debug_log,
            base_config=config,
          )
        self.session_id = next(_session_ids)
        self.description = f"PioneerReceiverSession(id={self.session_id}, <unconnected>)"
        if self.config.debug_log is None:
            self.logger = logger
        else:
            self.logger = get_child_logger(f"session{self.session_id}", self.config.debug_log)
            self.logger.debug("configured custom debug logger")
        self.wake_delay = wake_delay
        self.input_name_query_interval = input_name_query_interval
        self.framer = LineFramer()
        self.decoder = ResponseDecoder(trace=self.config.trace, logger=self.logger)
        self._deferred_handles = []
        self._connected_event = asyncio.Event()
        self._closed_event = asyncio.Event()

    @property
    def trace(self) -> bool:
        return self.config.trace

    def _trace(self, msg: str) -> None:
        if self.trace:
            self.logger.info(msg)

    @property
    def is_connected(self) -> bool:
        """True if the transport is open and not closing, including while waking."""
        transport = self.transport
        return (
            self.state in (SessionState.WAKING, SessionState.CONNECTED)
            and transport is not None
            and not transport.is_closing()
          )

    @property
    def input_names(self) -> Mapping[int, str]:
        """Read-only view of the input display names learned from the receiver."""
        return MappingProxyType(self.decoder.learned_input_names)

    def get_display_modes(self) -> Dict[int, str]:
        """Returns a dict mapping listening mode ordinal to listening mode name."""
        return get_display_modes()

    def get_input_modes(self) -> Dict[int, str]:
        """Returns a dict mapping input id to symbolic input name."""
        return get_input_modes()

    # ----------------------------------------------------------------- asyncio.Protocol

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        """Called when a connection is made.

        Wakes the receiver, then after wake_delay sends the initial status queries
        and emits "connect".
        """
        assert isinstance(transport, asyncio.Transport)
        assert self.state == SessionState.UNCONNECTED
        self.transport = transport
        self.peer_name = transport.get_extra_info('peername')
        self.description = f"PioneerReceiverSession(id={self.session_id}, to='{self.peer_name}')"
        self.logger.info(f"{self}: got connection.")
        self.framer.reset()
        self.state = SessionState.WAKING
        self.send(Wake())
        self._wake_timer = asyncio.get_running_loop().call_later(
            self.wake_delay,
            self._on_wake_done)

    def _on_wake_done(self) -> None:
        self._wake_timer = None
        if self.state != SessionState.WAKING:
            return
        self.state = SessionState.CONNECTED
        self.query()
        self._connected_event.set()
        self.emit("connect")

    def data_received(self, data: bytes) -> None:
        """Called when some data is received."""
        for line in self.framer.feed(data):
            self.handle_line(line)

    def eof_received(self) -> Optional[bool]:
        """Called when the receiver closes its end of the connection."""
        self.logger.info(f"{self}: connection ended")
        self._emit_end()
        return None

    def connection_lost(self, exc: Optional[BaseException]) -> None:
        """Called when the connection is lost or closed."""
        self._cancel_timers()
        self.transport = None
        self.state = SessionState.CLOSED
        self.framer.reset()
        if exc is None:
            self.logger.info(f"{self}: connection closed")
            self._emit_end()
        else:
            self.logger.info(f"{self}: connection error: {exc}")
            self._close_exc = exc
            self.emit("error", exc)
        self._closed_event.set()
        if self.logger is not logger:
            release_child_logger(self.logger)

    # ----------------------------------------------------------------- inbound

    def handle_line(self, line: RawLine) -> Optional[DecodedEvent]:
        """Decodes one received line, sends any follow-up commands, and emits the resulting event."""
        event = self.decoder.decode(line)
        if event is None:
            return None
        for command in event.follow_up:
            if self.is_connected:
                self.logger.debug(f"{self}: sending follow-up {command} for {event}")
                self.send(command)
        self.emit(event.name, *event.args())
        self.emit("event", event)
        return event

    def _emit_end(self) -> None:
        if not self._end_emitted:
            self._end_emitted = True
            self.emit("end")

    def _cancel_timers(self) -> None:
        if self._wake_timer is not None:
            self._wake_timer.cancel()
            self._wake_timer = None
        for handle in self._deferred_handles:
            handle.cancel()
        self._deferred_handles = []

    # ----------------------------------------------------------------- outbound

    def send(self, command: PioneerCommand) -> None:
        """Encodes a command and writes it to the transport.

        Raises PioneerReceiverError if the session is not connected.
        """
        transport = self.transport
        if transport is None or transport.is_closing():
            raise PioneerReceiverError(f"{self}: Cannot send {command}; not connected")
        data = command.encode()
        self.logger.debug(f"{self}: -> {data!r}")
        transport.write(data)

    def send_raw(self, text: str) -> None:
        """Sends an arbitrary protocol line."""
        self.send(RawCommand(text))

    def send_later(self, delay: float, command: PioneerCommand) -> asyncio.TimerHandle:
        """Schedules a command to be sent after delay seconds.

        Fire-and-forget: the command is silently dropped if the session is no longer
        connected when the delay expires. Pending sends are cancelled when the
        connection is lost.
        """
        loop = asyncio.get_running_loop()
        now = loop.time()
        self._deferred_handles = [ h for h in self._deferred_handles if h.when() > now and not h.cancelled() ]
        handle = loop.call_later(delay, self._send_deferred, command)
        self._deferred_handles.append(handle)
        return handle

    def _send_deferred(self, command: PioneerCommand) -> None:
        if not self.is_connected:
            self.logger.debug(f"{self}: dropping deferred {command}; not connected")
            return
        self.send(command)

    def query(self) -> None:
        """Queries all receiver state.

        The status queries are sent immediately; one input name query per known input
        follows, spaced input_name_query_interval apart.
        """
        bulk_query = BulkStatusQuery(interval_secs=self.input_name_query_interval)
        self.send(bulk_query)
        for delay, input_name_query in bulk_query.deferred_queries():
            self.send_later(delay, input_name_query)

    def power(self, on: bool) -> None:
        """Turn unit power on or off"""
        self._trace(f"turning power: {on}")
        self.send(PowerSet(on))

    def zpower(self, on: bool) -> None:
        """Turn zone 2 power on or off"""
        self._trace(f"turning zpower: {on}")
        self.send(ZonePowerSet(on))

    def mute(self, on: bool) -> None:
        """Turn mute on or off"""
        self._trace(f"turning mute: {on}")
        self.send(MuteSet(on))

    def zmute(self, on: bool) -> None:
        """Turn zone 2 mute on or off"""
        self._trace(f"turning zmute: {on}")
        self.send(ZoneMuteSet(on))

    def volume(self, db: Optional[float]) -> None:
        """Set the main zone volume, from -80 to +12 dB. Values outside that range are clamped."""
        command = VolumeSet(db)
        self._trace(f"setting volume db: {db} (level {command.level:03d})")
        self.send(command)

    def zvolume(self, db: Optional[float]) -> None:
        """Set the zone 2 volume, from -80 to 0 dB. Values outside that range are clamped."""
        command = ZoneVolumeSet(db)
        self._trace(f"setting zvolume db: {db} (level {command.level:02d})")
        self.send(command)

    def volume_up(self) -> None:
        self.send(VolumeStep(Direction.UP))

    def volume_down(self) -> None:
        self.send(VolumeStep(Direction.DOWN))

    def zvolume_up(self) -> None:
        self.send(ZoneVolumeStep(Direction.UP))

    def zvolume_down(self) -> None:
        self.send(ZoneVolumeStep(Direction.DOWN))

    def select_input(self, input: Union[int, str]) -> None:
        """Select the main zone input by id or symbolic name, and query the resulting input."""
        input_id = resolve_input_id(input)
        self.logger.debug(f"{self}: set input mode to: {input!r} ({input_id})")
        self.send(InputSelect(input_id))
        self.send(INPUT_QUERY)

    def select_zone_input(self, input: Union[int, str]) -> None:
        """Select the zone 2 input by id or symbolic name."""
        self.send(ZoneInputSelect(resolve_input_id(input)))

    def query_input_name(self, input: Union[int, str]) -> None:
        """Query the display name of an input. The answer arrives as an "inputName" event."""
        self.send(InputNameQuery(resolve_input_id(input)))

    def listening_mode(self, mode: int) -> None:
        """Set the listening mode by its decimal code."""
        self.logger.debug(f"{self}: set listening mode to: {mode}")
        self.send(ListeningModeSelect(mode))

    def press_hmg_button(self, button: Union[HmgButton, str]) -> None:
        """Press a button of the HMG (Home Media Gallery) network player."""
        if isinstance(button, str):
            try:
                button = HmgButton[button.upper()]
            except KeyError as e:
                raise PioneerReceiverError(f"Unknown HMG button: {button!r}") from e
        self.send(HmgButtonPress(button))

    def button_hmg_enter(self) -> None:
        self.press_hmg_button(HmgButton.ENTER)

    def button_hmg_return(self) -> None:
        self.press_hmg_button(HmgButton.RETURN)

    def button_hmg_play(self) -> None:
        self.press_hmg_button(HmgButton.PLAY)

    def button_hmg_stop(self) -> None:
        self.press_hmg_button(HmgButton.STOP)

    def button_hmg_up(self) -> None:
        self.press_hmg_button(HmgButton.UP)

    def button_hmg_down(self) -> None:
        self.press_hmg_button(HmgButton.DOWN)

    def button_hmg_1(self) -> None:
        self.press_hmg_button(HmgButton.DIGIT_1)

    # ----------------------------------------------------------------- lifecycle

    async def wait_connected(self) -> None:
        """Waits until the wake delay has passed and the initial queries have been sent.

        Raises PioneerReceiverError if the connection is closed first.
        """
        if self._connected_event.is_set():
            return
        connected_task = asyncio.ensure_future(self._connected_event.wait())
        closed_task = asyncio.ensure_future(self._closed_event.wait())
        try:
            await asyncio.wait([connected_task, closed_task], return_when=asyncio.FIRST_COMPLETED)
        finally:
            connected_task.cancel()
            closed_task.cancel()
        if not self._connected_event.is_set():
            raise PioneerReceiverError(f"{self}: Connection closed before session was established") from self._close_exc

    def close(self) -> None:
        """Closes the connection. Does not wait for it to be completely closed.
           Repeated calls are allowed and have no effect."""
        if self._wake_timer is not None:
            self._wake_timer.cancel()
            self._wake_timer = None
        if self.transport is not None and not self.transport.is_closing():
            self.transport.close()

    async def wait_closed(self) -> None:
        """Waits for the connection to be completely closed. Does not initiate closing."""
        await self._closed_event.wait()

    async def aclose(self) -> None:
        self.close()
        if self.state != SessionState.UNCONNECTED:
            await self.wait_closed()

    async def __aenter__(self) -> PioneerReceiverSession:
        self.logger.debug(f"{self}: Entering async context manager")
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
          ) -> None:
        self.logger.debug(f"{self}: Exiting async context manager, exc={exc_val}")
        await self.aclose()

    def __str__(self) -> str:
        return self.description

    def __repr__(self) -> str:
        return str(self)

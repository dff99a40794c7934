# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package pioneer_receiver provides a command-line tool and API for controlling
Pioneer AV receivers via their line-oriented TCP/IP control protocol.
"""

from .version import __version__

from .pkg_logging import logger

from .internal_types import Jsonable, JsonableDict

from .exceptions import PioneerReceiverError

from .constants import DEFAULT_PORT, CONNECT_TIMEOUT, WAKE_DELAY, INPUT_NAME_QUERY_INTERVAL

from .client import (
    EventEmitter,
    PioneerReceiverClientConfig,
    resolve_receiver_tcp_host,
    PioneerReceiverSession,
    SessionState,
    TcpPioneerReceiverConnector,
    pioneer_receiver_connect,
  )

from .protocol import (
    RawLine,
    RawLineType,
    LineFramer,
    ResponseDecoder,
    PioneerCommand,
    DecodedEvent,
    ListeningMode,
    HmgButton,
    inputs,
    listening_modes,
    get_display_modes,
    get_input_modes,
  )

from .util import (
    full_class_name,
    full_name_of_class,
    round_half_up,
)

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Pioneer receiver client.

Provides a session that connects to a receiver over TCP/IP, sends commands,
and emits decoded status events.
"""

from .event_emitter import EventEmitter
from .client_config import PioneerReceiverClientConfig
from .resolve_host import resolve_receiver_tcp_host
from .session import PioneerReceiverSession, SessionState
from .tcp_connector import TcpPioneerReceiverConnector, pioneer_receiver_connect

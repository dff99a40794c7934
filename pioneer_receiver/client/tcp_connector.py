# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Pioneer receiver TCP/IP client connector.

Opens a TCP/IP connection to a receiver and binds it to a PioneerReceiverSession.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..pkg_logging import logger
from .client_config import PioneerReceiverClientConfig
from .resolve_host import resolve_receiver_tcp_host
from .session import PioneerReceiverSession

class TcpPioneerReceiverConnector:
    """Creates sessions connected to a Pioneer receiver that is reachable over TCP/IP."""

    config: PioneerReceiverClientConfig
    host: Optional[str]
    port: Optional[int]
    connect_timeout_secs: Optional[float]
    has_base_config: bool

    def __init__(
            self,
            host: Optional[str]=None,
            port: Optional[int]=None,
            connect_timeout_secs: Optional[float] = None,
            config: Optional[PioneerReceiverClientConfig]=None,
          ) -> None:
        """Creates a connector.

              Args:
                host: The hostname or IPV4 address of the receiver.
                      may optionally be prefixed with "tcp://".
                      May be suffixed with ":<port>" to specify a
                      non-default port, which will override the port argument.
                      If None, the host will be taken from the
                        PIONEER_RECEIVER_HOST environment variable.
                port: The default TCP/IP port number to use. If None, the port
                      will be taken from PIONEER_RECEIVER_PORT. If that
                      environment variable is not found, port 23 is used.
                connect_timeout_secs: The timeout for establishing the TCP
                        connection. If not provided, CONNECT_TIMEOUT is used.
                config: A PioneerReceiverClientConfig object that specifies
                        the default host, port, etc to use.
                        If None, the config of the session passed to connect()
                        is used, or a default config if no session is passed.
        """
        self.host = host
        self.port = port
        self.connect_timeout_secs = connect_timeout_secs
        self.has_base_config = config is not None
        self.config = PioneerReceiverClientConfig(
            default_host=host,
            default_port=port,
            connect_timeout_secs=connect_timeout_secs,
            base_config=config
          )

    async def connect(
            self,
            session: Optional[PioneerReceiverSession]=None,
          ) -> PioneerReceiverSession:
        """Connects to the receiver and returns the connected session.

        The returned session is in the WAKING state; use session.wait_connected()
        to wait for the initial status queries to be sent. Connection failures
        (OSError, asyncio.TimeoutError) are raised to the caller; there are no retries.

        Args:
            session: An unconnected session to bind to the new connection, e.g. one
                     that already has observers registered. If None, a new session
                     is created from this connector's config. If this connector
                     was created without a config, the session's config supplies
                     the host, port and timeout not given to the connector.
        """
        config = self.config
        if session is None:
            session = PioneerReceiverSession(config=config)
        elif not self.has_base_config:
            config = PioneerReceiverClientConfig(
                default_host=self.host,
                default_port=self.port,
                connect_timeout_secs=self.connect_timeout_secs,
                base_config=session.config
              )
        resolved_host, resolved_port = resolve_receiver_tcp_host(config=config)
        bound_session = session
        loop = asyncio.get_running_loop()
        logger.info(f"Connecting to receiver at {resolved_host}:{resolved_port} with timeout={config.connect_timeout_secs}")
        await asyncio.wait_for(
            loop.create_connection(lambda: bound_session, resolved_host, resolved_port),
            timeout=config.connect_timeout_secs)
        return session

    def __str__(self) -> str:
        return f"TcpPioneerReceiverConnector(host='{self.config.default_host}', port={self.config.default_port})"

    def __repr__(self) -> str:
        return str(self)

async def pioneer_receiver_connect(
        host: Optional[str]=None,
        port: Optional[int]=None,
        config: Optional[PioneerReceiverClientConfig]=None,
        session: Optional[PioneerReceiverSession]=None,
      ) -> PioneerReceiverSession:
    """Connects to a Pioneer receiver over TCP/IP.

    Args:
        host: The hostname or IPV4 address of the receiver, optionally
                prefixed with "tcp://" and suffixed with ":<port>".
                If None, the host will be taken from the config or the
                PIONEER_RECEIVER_HOST environment variable.
        port: The default port. If None, taken from the config.
        config: A PioneerReceiverClientConfig object that specifies
                the default host, port, trace flag, etc. to use.
                If None, the session's config is used, or a default config
                if no session is provided.
        session: An optional unconnected session to bind to the connection.
    """
    connector = TcpPioneerReceiverConnector(host=host, port=port, config=config)
    return await connector.connect(session=session)

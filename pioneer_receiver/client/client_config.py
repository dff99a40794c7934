# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Pioneer receiver client configuration.

Provides general config object for a PioneerReceiverSession connected over TCP/IP.
"""

from __future__ import annotations

import os
import json

from ..internal_types import *
from ..exceptions import PioneerReceiverError
from ..constants import (
    DEFAULT_PORT,
    CONNECT_TIMEOUT,
  )

class PioneerReceiverClientConfig:
    """Pioneer receiver client configuration."""
    default_host: Optional[str]
    default_port: int
    connect_timeout_secs: float
    trace: bool
    debug_log: Optional[LogSink]

    def __init__(
            self,
            default_host: Optional[str]=None,
            *,
            default_port: Optional[int]=None,
            connect_timeout_secs: Optional[float]=None,
            trace: Optional[bool]=None,
            debug_log: Optional[LogSink]=None,
            base_config: Optional[PioneerReceiverClientConfig]=None,
            use_config_file: bool = True,
          ) -> None:
        """Creates a configuration for a Pioneer receiver client.

           Args:
             default_host: The default hostname or IPV4 address of the receiver.
                   may optionally be prefixed with "tcp://".
                   May be suffixed with ":<port>" to specify a
                   non-default port, which will override the default_port argument.
                   If None, the default host will be taken from the
                     PIONEER_RECEIVER_HOST environment variable.
             default_port: The default TCP/IP port number to use.
                    If None, the default port will be taken from PIONEER_RECEIVER_PORT.
                    If that environment variable is not found, the default
                    receiver port (23) will be used.
             connect_timeout_secs:
                    The timeout for connecting to the receiver, in seconds. If None,
                    the base configuration is used. If no base configuration is
                    provided, CONNECT_TIMEOUT is used.
             trace:
                    If True, every decoded status line and every command sent
                    is logged at INFO level. If None, the base configuration
                    is used. The default is False.
             debug_log:
                    An optional callable that receives every log message
                    produced by sessions using this configuration, in place
                    of normal logging. Not serialized by to_jsonable().
             base_config:
                     An optional base configuration to use.
             use_config_file:
                     If True and no base_config is provided, settings are loaded
                     from the JSON file named by PIONEER_RECEIVER_CONFIG_FILE, if set.
        """
        if base_config is None:
            self.init_from_defaults(use_config_file=use_config_file)
        else:
            self.init_from_base_config(base_config)

        if default_host is not None and default_host != '':
            self.default_host = default_host

        if default_port is not None and default_port > 0:
            self.default_port = default_port

        if connect_timeout_secs is not None:
            self.connect_timeout_secs = connect_timeout_secs

        if trace is not None:
            self.trace = trace

        if debug_log is not None:
            self.debug_log = debug_log

    def init_from_defaults(self, use_config_file: bool=True) -> None:
        """Initializes the configuration from defaults."""
        self.default_host = None
        self.default_port = DEFAULT_PORT
        self.connect_timeout_secs = CONNECT_TIMEOUT
        self.trace = False
        self.debug_log = None

        if use_config_file:
            config_file = os.environ.get('PIONEER_RECEIVER_CONFIG_FILE')
            if config_file is not None and config_file != '':
                with open(config_file, 'r') as f:
                    config_jsonable = json.load(f)
                self.update_from_jsonable(config_jsonable)

        default_host: Optional[str] = os.environ.get('PIONEER_RECEIVER_HOST')
        if default_host is not None and default_host != '':
            self.default_host = default_host
        default_port_str = os.environ.get('PIONEER_RECEIVER_PORT')
        if default_port_str is not None and default_port_str != '':
            try:
                self.default_port = int(default_port_str)
            except ValueError as e:
                raise PioneerReceiverError(f"Invalid PIONEER_RECEIVER_PORT: {default_port_str!r}") from e

    def init_from_base_config(self, base_config: PioneerReceiverClientConfig) -> None:
        """Initializes the configuration from a base configuration."""
        self.default_host = base_config.default_host
        self.default_port = base_config.default_port
        self.connect_timeout_secs = base_config.connect_timeout_secs
        self.trace = base_config.trace
        self.debug_log = base_config.debug_log

    def to_jsonable(self) -> JsonableDict:
        """Returns a JSON-serializable representation of the configuration."""
        result: JsonableDict = dict(
            default_host=self.default_host,
            default_port=self.default_port,
            connect_timeout_secs=self.connect_timeout_secs,
            trace=self.trace,
          )
        return result

    def to_json(self) -> str:
        """Returns a JSON representation of the configuration."""
        return json.dumps(self.to_jsonable())

    def update_from_jsonable(self, jsonable: JsonableDict) -> None:
        """Updates the configuration from a JSON-serializable representation."""
        if not isinstance(jsonable, dict):
            raise PioneerReceiverError(f"Client configuration must be a JSON object: {jsonable!r}")
        default_host = jsonable.get('default_host')
        if default_host is not None and default_host != '':
            self.default_host = str(default_host)
        default_port = jsonable.get('default_port')
        if default_port is not None and default_port != '':
            self.default_port = int(cast(Union[int, str], default_port))
        connect_timeout_secs = jsonable.get('connect_timeout_secs')
        if connect_timeout_secs is not None and connect_timeout_secs != '':
            self.connect_timeout_secs = float(cast(Union[float, str], connect_timeout_secs))
        trace = jsonable.get('trace')
        if trace is not None and trace != '':
            self.trace = bool(trace)

    @classmethod
    def from_jsonable(cls, jsonable: JsonableDict, use_config_file: bool=True) -> PioneerReceiverClientConfig:
        """Creates a configuration from a JSON-serializable representation."""
        result = cls(use_config_file=use_config_file)
        result.update_from_jsonable(jsonable)
        return result

    @classmethod
    def from_json(cls, json_str: str, use_config_file: bool=True) -> PioneerReceiverClientConfig:
        """Creates a configuration from a JSON representation."""
        jsonable = json.loads(json_str)
        return cls.from_jsonable(jsonable, use_config_file=use_config_file)

    @classmethod
    def from_config_file(cls, filename: str) -> PioneerReceiverClientConfig:
        """Creates a configuration from a JSON-serialized config file."""
        with open(filename, 'r') as f:
            jsonable: JsonableDict = json.load(f)

        result = cls.from_jsonable(jsonable, use_config_file=False)
        return result

    def __str__(self) -> str:
        return (
            f"PioneerReceiverClientConfig("
            f"default_host={self.default_host}, "
            f"default_port={self.default_port}, "
            f"trace={self.trace!r})"
          )

    def __repr__(self) -> str:
        return str(self)

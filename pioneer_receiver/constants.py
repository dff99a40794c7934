# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by pioneer_receiver"""

DEFAULT_PORT = 23
"""The listen port number used by the receiver for TCP/IP control. Some models
   use 8102 instead."""

CONNECT_TIMEOUT = 15.0
"""The timeout for connecting to the receiver over TCP/IP, in seconds."""

WAKE_DELAY = 0.1
"""Delay between the wake line sent on connect and the initial status queries, in seconds."""

INPUT_NAME_QUERY_INTERVAL = 0.1
"""Spacing between successive input name queries issued by a bulk status query, in seconds.
   The receiver drops commands if too many arrive at once."""

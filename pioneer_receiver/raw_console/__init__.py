# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
A RAW console tool for Pioneer receivers"""

from ..version import __version__

from ..exceptions import PioneerReceiverError

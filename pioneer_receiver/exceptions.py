#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class PioneerReceiverError(Exception):
  """Base class for all error exceptions raised by pioneer_receiver; e.g., invalid command text,
     an unknown input name, a bad host specifier, or a write to a closed session."""
  pass

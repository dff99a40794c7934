# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
General utility functions
"""
from __future__ import annotations

import math

from .internal_types import *

def full_name_of_class(cls: Type[object]) -> str:
    """Return the full name of a class, including the module name."""
    module = cls.__module__
    if module == 'builtins':
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"

def full_class_name(o: object) -> str:
    """Return the full name of an object's class, including the module name."""
    return full_name_of_class(o.__class__)

def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded toward positive infinity.

    Unlike the built-in round(), round_half_up(80.5) == 81 and round_half_up(2.5) == 3.
    """
    return int(math.floor(value + 0.5))

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Type hints used internally by this package. Intended to be star-imported.
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    AsyncContextManager,
    AsyncIterator,
    Awaitable,
    Callable,
    ClassVar,
    Coroutine,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
    Union,
    cast,
  )

from types import TracebackType, MappingProxyType

from typing_extensions import TypeAlias

Jsonable: TypeAlias = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
"""A type that can be serialized to JSON."""

JsonableDict: TypeAlias = Dict[str, Jsonable]
"""A type that can be serialized to a JSON object."""

HostAndPort: TypeAlias = Tuple[str, int]
"""A (host, port) tuple, as used by socket addresses."""

EventCallback: TypeAlias = Callable[..., Any]
"""A callback registered for a named event; receives the event's positional payload."""

LogSink: TypeAlias = Callable[[str], Any]
"""A custom logging sink; receives each formatted log message."""

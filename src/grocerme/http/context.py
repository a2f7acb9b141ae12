"""
=============================================================================
REQUEST CONTEXT STORE
=============================================================================

Per-request key/value storage that travels with the request from the
gates, through the router, into the handler.

=============================================================================
COPY-ON-WRITE
=============================================================================

Nothing here ever mutates. Writing a value produces a NEW context and a
NEW request bound to it; the request you passed in is untouched:

    req0 ── set_user_id(req0, "u1") ──► req1
     │                                   │
     context: {}                         context: {"user_id": "u1"}

    req1 ── set_path_params(req1, {"id": "42"}) ──► req2
                                                     │
            context: {"user_id": "u1", "path_params": {"id": "42"}}

req0 and req1 still hold exactly what they held before. Two requests
served at the same time on different worker threads therefore can never
observe each other's values; there is no shared mutable state to race on.

=============================================================================
WELL-KNOWN KEYS
=============================================================================

    USER_ID_KEY      "user_id"      verified identity (set by the auth gate)
    PATH_PARAMS_KEY  "path_params"  {name: raw segment} (set by the router)

=============================================================================
"""

import dataclasses
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .request import HTTPRequest


USER_ID_KEY = "user_id"
PATH_PARAMS_KEY = "path_params"


class RequestContext(Mapping):
    """
    Immutable mapping of request-scoped values.

    Behaves like a read-only dict. Use with_value() to get a copy with
    one more entry.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values = MappingProxyType(dict(values or {}))

    def with_value(self, key: str, value: Any) -> "RequestContext":
        """Return a new context with key set; this one is unchanged."""
        values = dict(self._values)
        values[key] = value
        return RequestContext(values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._values) == dict(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"RequestContext({dict(self._values)!r})"


# =============================================================================
# CORE OPERATIONS
# =============================================================================

def derive(request: "HTTPRequest") -> "HTTPRequest":
    """Return a copy of the request bound to a fresh, empty context."""
    return dataclasses.replace(request, context=RequestContext())


def set_value(request: "HTTPRequest", key: str, value: Any) -> "HTTPRequest":
    """
    Return a copy of the request whose context also holds key → value.

    Keys already present are preserved (or overwritten if key repeats).
    The input request and its context are not modified.
    """
    return dataclasses.replace(request, context=request.context.with_value(key, value))


def get_value(request: "HTTPRequest", key: str) -> Tuple[Any, bool]:
    """
    Look up a context value.

    Returns:
        (value, True) if present, (None, False) if absent. An absent key
        is never reported as a default value.
    """
    if key in request.context:
        return request.context[key], True
    return None, False


# =============================================================================
# CONVENIENCE ACCESSORS
# =============================================================================

def set_user_id(request: "HTTPRequest", user_id: str) -> "HTTPRequest":
    return set_value(request, USER_ID_KEY, user_id)


def get_user_id(request: "HTTPRequest") -> Tuple[str, bool]:
    """Verified identity, or ("", False) if the request is unauthenticated."""
    value, found = get_value(request, USER_ID_KEY)
    if not found or not isinstance(value, str):
        return "", False
    return value, True


def set_path_params(request: "HTTPRequest", params: Dict[str, str]) -> "HTTPRequest":
    # Snapshot so later changes to the caller's dict can't leak in
    return set_value(request, PATH_PARAMS_KEY, MappingProxyType(dict(params)))


def get_path_params(request: "HTTPRequest") -> Mapping:
    value, found = get_value(request, PATH_PARAMS_KEY)
    return value if found else MappingProxyType({})


def get_path_param(request: "HTTPRequest", name: str) -> str:
    """A single path parameter, or "" when it was not bound."""
    return get_path_params(request).get(name, "")

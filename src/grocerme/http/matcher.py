"""
=============================================================================
PATH MATCHER
=============================================================================

Matches a route template against a request path, segment by segment.

    template:  /lists/:id/items/:item_id
    path:      /lists/42/items/7

    ┌──────────┬──────────┬─────────┬────────────────────────────────┐
    │ template │ path     │ kind    │ result                         │
    ├──────────┼──────────┼─────────┼────────────────────────────────┤
    │ lists    │ lists    │ literal │ equal → continue               │
    │ :id      │ 42       │ param   │ bind id = "42"                 │
    │ items    │ items    │ literal │ equal → continue               │
    │ :item_id │ 7        │ param   │ bind item_id = "7"             │
    └──────────┴──────────┴─────────┴────────────────────────────────┘

    → ({"id": "42", "item_id": "7"}, True)

=============================================================================
RULES
=============================================================================

1. Leading and trailing "/" are trimmed from both sides before splitting,
   so "/lists/" and "/lists" are the same path.

2. "/" only matches "/" (both trim to a single empty segment).

3. Segment counts must be equal. There are no wildcards: a template with
   3 segments never matches a path with 2 or 4.

4. A ":name" segment binds the path segment as-is. No type checks and no
   URL-decoding happen here; the request parser has already decoded the
   path before it reaches the router.

5. Any other segment must be exactly equal.

A failed match returns ({}, False), never a partially-filled dict.

=============================================================================
INTERVIEW QUESTIONS ABOUT MATCHING
=============================================================================

Q: "Why a linear segment comparison instead of a regex or a trie?"
A: "With a handful of routes the scan is O(routes × segments) and the
   rule set stays trivially auditable: first registration wins, counts
   must match, nothing greedy."

Q: "What happens with /lists/me and /lists/:id?"
A: "Both match /lists/me. Whichever was registered first wins, so
   register the literal route before the parameterized one."

=============================================================================
"""

from typing import Dict, List, Tuple


PARAM_MARKER = ":"


def split_segments(path: str) -> List[str]:
    """
    Trim surrounding slashes and split into segments.

        "/lists/42/" → ["lists", "42"]
        "/"          → [""]
    """
    return path.strip("/").split("/")


def is_param(segment: str) -> bool:
    return segment.startswith(PARAM_MARKER)


def match(template: str, path: str) -> Tuple[Dict[str, str], bool]:
    """
    Match a path against a route template.

    Args:
        template: Route template, e.g. "/lists/:id".
        path: Request path, e.g. "/lists/42".

    Returns:
        (params, True) on a match, ({}, False) otherwise.

    Example:
        >>> match("/lists/:id", "/lists/42")
        ({'id': '42'}, True)
        >>> match("/lists/:id", "/lists")
        ({}, False)
    """
    template_parts = split_segments(template)
    path_parts = split_segments(path)

    if len(template_parts) != len(path_parts):
        return {}, False

    params: Dict[str, str] = {}
    for template_part, path_part in zip(template_parts, path_parts):
        if is_param(template_part):
            params[template_part[len(PARAM_MARKER):]] = path_part
        elif template_part != path_part:
            return {}, False

    return params, True


def template_params(template: str) -> List[str]:
    """
    Parameter names declared by a template, in order.

    Raises:
        ValueError: If the template does not start with "/", declares a
            parameter with an empty name, or repeats a name.
    """
    if not template.startswith("/"):
        raise ValueError(f"Route template must start with '/': {template!r}")

    names: List[str] = []
    for segment in split_segments(template):
        if not is_param(segment):
            continue
        name = segment[len(PARAM_MARKER):]
        if not name:
            raise ValueError(f"Empty parameter name in route template {template!r}")
        if name in names:
            raise ValueError(f"Duplicate parameter {name!r} in route template {template!r}")
        names.append(name)
    return names

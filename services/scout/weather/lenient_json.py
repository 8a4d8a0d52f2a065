"""
Lenient JSON decoding for WindBorne response bodies.

The station API sometimes returns fragments instead of a JSON document, e.g.

    "points": [{"timestamp": "...", "temperature": 20}]

Strategies are tried in order; the first one that yields valid JSON wins:

  strict           json.loads on the whole body
  points_prefix    body starts with "points": / 'points': / points: ,
                   wrap the remainder as {"points": <rest>}
  bare_array       body starts with "[", wrap as {"points": <body>}
  embedded_points  find "points": [ anywhere, cut out the balanced array,
                   wrap as {"points": <array>}

If none succeed the body is rejected with UpstreamParseError. Empty bodies are
an error, not an empty result. Nothing here knows about HTTP.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from services.scout.errors import UpstreamParseError

logger = logging.getLogger(__name__)

_POINTS_PREFIX_RE = re.compile(r"""^["']?points["']?\s*:""", re.IGNORECASE)
_EMBEDDED_POINTS_RE = re.compile(r'"points"\s*:\s*\[')


@dataclass(frozen=True)
class DecodedPayload:
    value: Any
    strategy: str

    @property
    def repaired(self) -> bool:
        return self.strategy != "strict"


def _strict(text: str) -> Any:
    return json.loads(text)


def _points_prefix(text: str) -> Any:
    match = _POINTS_PREFIX_RE.match(text)
    if match is None:
        raise ValueError("no leading points key")
    rest = text[match.end():].strip()
    return json.loads(f'{{"points": {rest}}}')


def _bare_array(text: str) -> Any:
    if not text.startswith("["):
        raise ValueError("not an array")
    return json.loads(f'{{"points": {text}}}')


def _balanced_array_end(text: str, start: int) -> int:
    """Index just past the bracket closing the array opened at text[start].

    Brackets inside string literals are ignored. Returns -1 if unbalanced.
    """
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def _embedded_points(text: str) -> Any:
    match = _EMBEDDED_POINTS_RE.search(text)
    if match is None:
        raise ValueError("no embedded points array")
    start = match.end() - 1
    end = _balanced_array_end(text, start)
    if end == -1:
        raise ValueError("unbalanced points array")
    return json.loads(f'{{"points": {text[start:end]}}}')


STRATEGIES: list[tuple[str, Callable[[str], Any]]] = [
    ("strict", _strict),
    ("points_prefix", _points_prefix),
    ("bare_array", _bare_array),
    ("embedded_points", _embedded_points),
]


def lenient_decode(text: str | None, source: str = "") -> DecodedPayload:
    """
    Decode a provider body, repairing known fragment shapes.

    Args:
        text:   Raw response body.
        source: Label for log lines (usually the request path).

    Raises:
        UpstreamParseError: body is empty or no strategy produced valid JSON.
    """
    if text is None or not text.strip():
        raise UpstreamParseError("Empty response from WindBorne API", provider="windborne")

    trimmed = text.strip()
    for name, strategy in STRATEGIES:
        try:
            value = strategy(trimmed)
        except (ValueError, RecursionError):
            continue
        if name != "strict":
            logger.info("Repaired JSON fragment for %s using %s", source or "response", name)
        return DecodedPayload(value=value, strategy=name)

    logger.error(
        "Invalid JSON from WindBorne for %s, first 500 chars: %s",
        source or "response",
        trimmed[:500],
    )
    raise UpstreamParseError("Invalid JSON response from WindBorne API", provider="windborne")

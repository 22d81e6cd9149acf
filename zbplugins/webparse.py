"""Reading the answers of the illustration search and slang dictionary services."""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping

_HREF = re.compile(r'<a href=".*">')
_RATE_LIMITED = "\n调用过多被网站暂时封禁，请等待数个小时后使用该功能~"


class SearchError(Exception):
    """The search service reported an error or found nothing."""


def _load(payload: bytes | str | Mapping[str, Any]) -> Any:
    if isinstance(payload, Mapping):
        return payload
    try:
        return json.loads(payload)
    except ValueError as err:
        raise SearchError(f"invalid response: {err}") from err


def format_tags(tags: Iterable[Mapping[str, Any]]) -> str:
    """Tags as lines of "#name (translation)", each preceded by a newline."""
    parts = []
    for tag in tags:
        line = "\n#" + str(tag.get("name", ""))
        translation = tag.get("translation") or ""
        if translation:
            line += f" ({translation})"
        parts.append(line)
    return "".join(parts)


def clean_description(text: str) -> str:
    """Turn line breaks into newlines and drop link tags."""
    text = text.replace("<br />", "\n").replace("</a>", "")
    return _HREF.sub("", text)


def parse_search_result(payload: bytes | str | Mapping[str, Any]) -> list[dict[str, Any]]:
    """The illustrations of a search answer; SearchError on error or no result."""
    data = _load(payload)
    if not isinstance(data, Mapping):
        raise SearchError("invalid response")
    if data.get("error"):
        raise SearchError(str(data.get("message", "")))
    body = data.get("data")
    illusts = body.get("illusts") if isinstance(body, Mapping) else None
    if not illusts:
        raise SearchError("no result")
    return list(illusts)


def first_definition(payload: bytes | str | Mapping[str, Any]) -> dict[str, Any] | None:
    """The first definition among the dictionary's entities, or None."""
    data = _load(payload)
    if not isinstance(data, Mapping):
        return None
    entities = data.get("data")
    if isinstance(entities, Mapping):
        values: Iterable[Any] = entities.values()
    elif isinstance(entities, list):
        values = entities
    else:
        return None
    for value in values:
        if not isinstance(value, Mapping):
            continue
        definitions = value.get("definitions")
        if isinstance(definitions, list) and definitions and definitions[0] is not None:
            return definitions[0]
    return None


def jikipedia_status_error(status: int) -> str | None:
    """Error text for a non-200 status of the dictionary service, else None."""
    if status == 200:
        return None
    extra = _RATE_LIMITED if status == 423 else ""
    return f"status code: {status}{extra}"
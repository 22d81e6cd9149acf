"""Random picture API: request URLs and reading its JSON answers."""

from __future__ import annotations

import json
from typing import Any, Mapping
from urllib.parse import quote_plus

API = "https://api.lolicon.app/setu/v2"
NOT_FOUND = "未找到相关内容, 换个tag试试吧"


class LoliconError(Exception):
    """The API reported an error or returned no picture."""


def _get(value: Any, *path: Any) -> Any:
    for key in path:
        if isinstance(key, int):
            if not isinstance(value, list) or key >= len(value):
                return None
        elif not isinstance(value, Mapping) or key not in value:
            return None
        value = value[key]
    return value


def image_url_from_payload(payload: bytes | str | Mapping[str, Any]) -> str:
    """The original-size picture URL of the first result, on the i.pixiv.re mirror."""
    if isinstance(payload, Mapping):
        data: Any = payload
    else:
        try:
            data = json.loads(payload)
        except ValueError as err:
            raise LoliconError(f"invalid response: {err}") from err
    error = _get(data, "error")
    if isinstance(error, str) and error:
        raise LoliconError(error)
    url = _get(data, "data", 0, "urls", "original")
    if not isinstance(url, str) or not url:
        raise LoliconError(NOT_FOUND)
    return url.replace("i.pixiv.cat", "i.pixiv.re")


def tag_query_url(tag: str) -> str:
    """API URL asking for a picture with ``tag``."""
    return API + "?tag=" + quote_plus(tag, safe="")


def image_name(url: str) -> str:
    """File name of a picture URL without its four-character extension."""
    return url[url.rfind("/") + 1: len(url) - 4]
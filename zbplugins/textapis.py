"""Small text services: the 绝绝子 phrase maker and beast-speak encoding."""

from __future__ import annotations

import json
from typing import Any, Mapping

KEYWORD = "绝绝子"
JUEJUEZI_URL = "https://www.offjuan.com/api/juejuezi/text"
JUEJUEZI_REFERER = "https://juejuezi.offjuan.com/"
JUEJUEZI_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)
BEAST_ENCODE = "http://ovooa.com/API/sho_u/?msg="
BEAST_DECODE = "http://ovooa.com/API/sho_u/?format=1&msg="


def strip_keyword(text: str) -> str:
    """The text with every 绝绝子 removed."""
    return text.replace(KEYWORD, "")


def juejuezi_body(verb: str, noun: str) -> str:
    """Request body for the phrase maker, written as the service expects it."""
    return '{"verb":"' + verb + '","noun":"' + noun + '"}'


def beast_url(text: str, decode: bool = False) -> str:
    """URL that encodes ``text`` into beast speak, or decodes it back."""
    return (BEAST_DECODE if decode else BEAST_ENCODE) + text


def beast_message(payload: bytes | str | Mapping[str, Any]) -> str:
    """The message field of the beast-speak answer; "" when absent."""
    if isinstance(payload, Mapping):
        data: Any = payload
    else:
        try:
            data = json.loads(payload)
        except ValueError as err:
            raise ValueError(f"invalid response: {err}") from err
    body = data.get("data") if isinstance(data, Mapping) else None
    if not isinstance(body, Mapping):
        return ""
    if "Message" in body:
        value = body["Message"]
    else:
        value = next(
            (v for k, v in body.items() if isinstance(k, str) and k.lower() == "message"),
            "",
        )
    return value if isinstance(value, str) else ""
"""Hearthstone card and deck search: request URLs and reading the answers."""

from __future__ import annotations

import json
from typing import Any, Mapping

SITE = "https://hs.fbigame.com"
AJAX = "https://hs.fbigame.com/ajax.php?"
PARAMS = (
    "mod=get_cards_list&"
    "mode=-1&"
    "extend=-1&"
    "mutil_extend=&"
    "hero=-1&"
    "rarity=-1&"
    "cost=-1&"
    "mutil_cost=&"
    "techlevel=-1&"
    "type=-1&"
    "collectible=-1&"
    "isbacon=-1&"
    "page=1&"
    "search_type=1&"
    "deckmode=normal"
)
CARD_IMAGE = "https://res.fbigame.com/hs/v13/"
USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 6.0; Nexus 5 Build/MRA58N) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/86.0.4240.198 Mobile Safari/537.36"
)
MAX_CARDS = 5

_HASH_MARK = 'var hash = "'


def _load(payload: bytes | str | Mapping[str, Any]) -> Any:
    if isinstance(payload, Mapping):
        return payload
    try:
        return json.loads(payload)
    except ValueError:
        return None


def extract_page_hash(html: str) -> str:
    """The request hash embedded in the site's front page."""
    _, found, rest = html.partition(_HASH_MARK)
    if not found:
        raise ValueError("page hash not found")
    return rest.split('"', 1)[0]


def search_url(page_hash: str, keyword: str) -> str:
    """URL listing the cards that match ``keyword``."""
    return AJAX + PARAMS + "&hash=" + page_hash + "&search=" + keyword


def deck_url(page_hash: str, deck_code: str) -> str:
    """URL rendering the picture of a deck code."""
    return (
        AJAX
        + PARAMS
        + "mod=general_deck_image&deck_code="
        + deck_code
        + "&deck_text=&hash="
        + page_hash
        + "&search="
        + deck_code
    )


def card_image_url(card_id: str, auth_key: str) -> str:
    """URL of a card's picture."""
    return CARD_IMAGE + card_id + ".png?auth_key=" + auth_key


def card_entries(
    payload: bytes | str | Mapping[str, Any], limit: int = MAX_CARDS
) -> list[tuple[str, str]]:
    """(card id, auth key) of the first ``limit`` cards in a search answer.

    An unreadable answer or an empty list gives no entries.
    """
    data = _load(payload)
    cards = data.get("list") if isinstance(data, Mapping) else None
    if not isinstance(cards, list):
        return []
    entries = []
    for card in cards[: max(limit, 0)]:
        if not isinstance(card, Mapping):
            card = {}
        entries.append((str(card.get("CardID", "")), str(card.get("auth_key", ""))))
    return entries


def deck_image(payload: bytes | str | Mapping[str, Any]) -> str:
    """The deck picture of a deck answer as a base64:// image reference."""
    data = _load(payload)
    img = data.get("img") if isinstance(data, Mapping) else None
    return "base64://" + (img if isinstance(img, str) else "")
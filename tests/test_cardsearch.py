import json

import pytest

from zbplugins.cardsearch import (
    card_entries,
    card_image_url,
    deck_image,
    deck_url,
    extract_page_hash,
    search_url,
)


def test_extract_page_hash():
    html = '<script>var x = 1; var hash = "abc123"; var y = "z";</script>'
    assert extract_page_hash(html) == "abc123"


def test_extract_page_hash_missing():
    with pytest.raises(ValueError):
        extract_page_hash("<html>nothing here</html>")


def test_search_url():
    url = search_url("h1", "火球")
    assert url.startswith("https://hs.fbigame.com/ajax.php?mod=get_cards_list&")
    assert url.endswith("deckmode=normal&hash=h1&search=火球")


def test_deck_url():
    code = "AAE" + "x" * 70
    url = deck_url("h2", code)
    assert url.startswith("https://hs.fbigame.com/ajax.php?mod=get_cards_list&")
    assert "deckmode=normalmod=general_deck_image&deck_code=" + code in url
    assert url.endswith("&deck_text=&hash=h2&search=" + code)


def test_card_image_url():
    assert card_image_url("CS2_029", "k1") == (
        "https://res.fbigame.com/hs/v13/" + "CS2_029" + ".png?auth_key=" + "k1"
    )


def test_card_entries_limit():
    payload = {"list": [{"CardID": f"C{i}", "auth_key": f"a{i}"} for i in range(7)]}
    entries = card_entries(json.dumps(payload))
    assert len(entries) == 5
    assert entries[0] == ("C0", "a0")
    assert entries[-1] == ("C4", "a4")


def test_card_entries_custom_limit_and_bytes():
    payload = {"list": [{"CardID": "X", "auth_key": "y"}, {"CardID": "Z", "auth_key": "w"}]}
    assert card_entries(json.dumps(payload).encode(), limit=1) == [("X", "y")]


def test_card_entries_empty_or_invalid():
    assert card_entries({"list": []}) == []
    assert card_entries("not json") == []


def test_deck_image():
    assert deck_image('{"img": "QUJD"}') == "base64://QUJD"
    assert deck_image("{}") == "base64://"
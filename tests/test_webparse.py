import json

import pytest

from zbplugins.webparse import (
    SearchError,
    clean_description,
    first_definition,
    format_tags,
    jikipedia_status_error,
    parse_search_result,
)


def test_format_tags_with_and_without_translation():
    tags = [{"name": "cat", "translation": "neko"}, {"name": "dog", "translation": ""}]
    assert format_tags(tags) == "\n#cat (neko)\n#dog"


def test_format_tags_empty():
    assert format_tags([]) == ""


def test_clean_description():
    text = 'first<br />second <a href="https://example.com/x">link</a>'
    assert clean_description(text) == "first\nsecond link"


def test_parse_search_result_returns_illusts():
    payload = json.dumps(
        {"error": False, "message": "", "data": {"illusts": [{"id": 7, "title": "t"}]}}
    )
    illusts = parse_search_result(payload)
    assert [i["id"] for i in illusts] == [7]


def test_parse_search_result_reports_error_message():
    with pytest.raises(SearchError, match="bad keyword"):
        parse_search_result({"error": True, "message": "bad keyword"})


def test_parse_search_result_empty_raises():
    with pytest.raises(SearchError):
        parse_search_result({"error": False, "data": {"illusts": []}})


def test_parse_search_result_invalid_json():
    with pytest.raises(SearchError):
        parse_search_result(b"not json")


def test_first_definition_skips_entities_without_definitions():
    payload = {
        "data": [
            {"definitions": []},
            {"definitions": [{"id": 5, "plaintext": "meaning"}]},
            {"definitions": [{"id": 6}]},
        ]
    }
    assert first_definition(payload) == {"id": 5, "plaintext": "meaning"}


def test_first_definition_none_when_missing():
    assert first_definition(json.dumps({"data": [{"other": 1}]})) is None


def test_status_ok_is_no_error():
    assert jikipedia_status_error(200) is None


def test_status_error_text():
    assert jikipedia_status_error(500) == "status code: 500"


def test_status_423_mentions_ban():
    text = jikipedia_status_error(423)
    assert text.startswith("status code: 423\n")
    assert "调用过多被网站暂时封禁" in text
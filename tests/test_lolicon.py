import json
from urllib.parse import unquote_plus

import pytest

from zbplugins.lolicon import (
    API,
    NOT_FOUND,
    LoliconError,
    image_name,
    image_url_from_payload,
    tag_query_url,
)


def payload(url, error=""):
    return json.dumps({"error": error, "data": [{"urls": {"original": url}}]})


def test_url_mirror_rewrite():
    url = image_url_from_payload(payload("https://i.pixiv.cat/img/1_p0.jpg"))
    assert url == "https://i.pixiv.re/img/1_p0.jpg"


def test_url_from_bytes_and_mapping():
    raw = payload("https://example.com/a.png")
    assert image_url_from_payload(raw.encode()) == "https://example.com/a.png"
    assert image_url_from_payload(json.loads(raw)) == "https://example.com/a.png"


def test_api_error_is_raised():
    with pytest.raises(LoliconError) as info:
        image_url_from_payload(payload("https://example.com/a.png", error="bad tag"))
    assert str(info.value) == "bad tag"


@pytest.mark.parametrize(
    "body", ['{"error": "", "data": []}', '{"error": ""}', payload("")]
)
def test_no_result(body):
    with pytest.raises(LoliconError) as info:
        image_url_from_payload(body)
    assert str(info.value) == NOT_FOUND


def test_invalid_json():
    with pytest.raises(LoliconError):
        image_url_from_payload("not json")


def test_tag_query_url_round_trip():
    for tag in ["萝莉", "a b", "x&y=z"]:
        url = tag_query_url(tag)
        prefix = API + "?tag="
        assert url.startswith(prefix)
        assert unquote_plus(url[len(prefix):]) == tag
        assert " " not in url and "&" not in url[len(prefix):]


def test_tag_query_url_space():
    assert tag_query_url("a b").endswith("?tag=a+b")


def test_image_name():
    assert image_name("https://i.pixiv.re/img/12345_p0.jpg") == "12345_p0"
    assert image_name("https://example.com/x/abc.png") == "abc"
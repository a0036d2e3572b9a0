import json
from datetime import datetime, timezone

import pytest

from pinboard_cli.api import DecodeError
from pinboard_cli.models import decode_all, decode_posts, decode_short, decode_suggest


def _post(**overrides) -> dict:
    post = {
        "href": "https://example.com/",
        "description": "Example",
        "extended": "",
        "meta": "abc",
        "hash": "def",
        "time": "2016-06-11T19:48:02Z",
        "shared": "yes",
        "toread": "no",
        "tags": "demo",
    }
    post.update(overrides)
    return post


def test_decode_posts_parses_timestamps() -> None:
    body = json.dumps({"date": "2016-06-11T19:48:02Z", "user": "alice", "posts": [_post()]})

    content = decode_posts(body.encode())

    assert content.user == "alice"
    assert content.date == datetime(2016, 6, 11, 19, 48, 2, tzinfo=timezone.utc)
    assert content.posts[0].time.tzinfo is not None
    assert content.posts[0].tags == "demo"


def test_decode_posts_ignores_unknown_fields() -> None:
    body = json.dumps(
        {"date": "2016-06-11T19:48:02Z", "user": "alice", "posts": [_post(others=3)], "x": 1}
    )

    assert decode_posts(body.encode()).posts[0].href == "https://example.com/"


def test_decode_posts_defaults_missing_text_fields() -> None:
    body = json.dumps(
        {"date": "2016-06-11T19:48:02+02:00", "posts": [{"href": "https://a/", "time": "2016-06-11T19:48:02Z"}]}
    )

    post = decode_posts(body.encode()).posts[0]

    assert post.extended == ""
    assert post.shared == ""


@pytest.mark.parametrize(
    "value",
    ["yesterday", "2016-06-11", "2016-06-11T19:48:02", "2016-13-40T00:00:00Z", 1465674482, None],
)
def test_decode_all_rejects_malformed_time(value) -> None:
    body = json.dumps([_post(time=value)])

    with pytest.raises(DecodeError):
        decode_all(body.encode())


def test_decode_all_requires_bare_list() -> None:
    body = json.dumps({"date": "2016-06-11T19:48:02Z", "user": "alice", "posts": []})

    with pytest.raises(DecodeError):
        decode_all(body.encode())


def test_decode_all_accepts_offsets() -> None:
    posts = decode_all(json.dumps([_post(time="2016-06-11T21:48:02+02:00")]).encode())

    assert posts[0].time.utcoffset().total_seconds() == 7200


def test_decode_suggest_uses_positions() -> None:
    body = b'[{"popular":["a","b"],"recommended":["x"]},{"popular":["y"],"recommended":["c"]}]'

    content = decode_suggest(body)

    assert content.popular == ["a", "b"]
    assert content.recommended == ["c"]


def test_decode_suggest_requires_two_entries() -> None:
    with pytest.raises(DecodeError, match="expected 2 entries"):
        decode_suggest(b'[{"popular":["a"]}]')


def test_decode_suggest_missing_lists_are_empty() -> None:
    content = decode_suggest(b"[{}, {}]")

    assert content.popular == []
    assert content.recommended == []


def test_decode_short() -> None:
    assert decode_short(b'{"result_code":"done"}').result_code == "done"


@pytest.mark.parametrize("body", [b"", b"{", b"[]", b'{"code": "done"}'])
def test_decode_short_rejects_bad_bodies(body: bytes) -> None:
    with pytest.raises(DecodeError):
        decode_short(body)

"""Response records returned by the Pinboard API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from .api import DecodeError


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError("timestamp must be an ISO-8601 string")
    # fromisoformat only accepts a trailing "Z" from Python 3.11 onwards.
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    if "T" not in text.upper():
        raise ValueError("timestamp must include a time component")
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError("timestamp must include a UTC offset")
    return parsed


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Post(_Record):
    """A single bookmark."""

    href: str
    description: str = ""
    extended: str = ""
    meta: str = ""
    hash: str = ""
    time: datetime
    shared: str = ""
    toread: str = ""
    tags: str = ""

    @field_validator("time", mode="before")
    @classmethod
    def _check_time(cls, value: Any) -> datetime:
        return _parse_timestamp(value)


class PostsContent(_Record):
    """Envelope returned by posts/recent and posts/get."""

    date: datetime
    user: str = ""
    posts: List[Post] = []

    @field_validator("date", mode="before")
    @classmethod
    def _check_date(cls, value: Any) -> datetime:
        return _parse_timestamp(value)


class SuggestEntry(_Record):
    popular: List[str] = []
    recommended: List[str] = []


class SuggestContent(_Record):
    """Tag suggestions for a URL.

    The API answers with a two element array rather than an object: the first
    element carries ``popular`` and the second ``recommended``.
    """

    popular: List[str]
    recommended: List[str]


class ShortResponse(_Record):
    """Status payload returned by posts/add and posts/delete."""

    result_code: str


_ModelT = TypeVar("_ModelT", bound=BaseModel)

_POST_LIST = TypeAdapter(List[Post])
_SUGGEST_LIST = TypeAdapter(List[SuggestEntry])


def _decode(model: Type[_ModelT], body: bytes) -> _ModelT:
    try:
        return model.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Failed to decode {model.__name__} response: {exc}") from exc


def decode_posts(body: bytes) -> PostsContent:
    return _decode(PostsContent, body)


def decode_all(body: bytes) -> Sequence[Post]:
    try:
        return _POST_LIST.validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Failed to decode AllContent response: {exc}") from exc


def decode_suggest(body: bytes) -> SuggestContent:
    try:
        entries = _SUGGEST_LIST.validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Failed to decode SuggestContent response: {exc}") from exc
    if len(entries) < 2:
        raise DecodeError(
            f"Failed to decode SuggestContent response: expected 2 entries, got {len(entries)}"
        )
    return SuggestContent(popular=entries[0].popular, recommended=entries[1].recommended)


def decode_short(body: bytes) -> ShortResponse:
    return _decode(ShortResponse, body)

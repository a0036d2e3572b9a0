"""Command-line client for the Pinboard bookmarking API."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Sequence
from urllib.parse import urlsplit

import httpx

from . import __version__
from .api import DEFAULT_BASE_URL, HANDSHAKE_TIMEOUT, PinboardError, build_client, build_url, fetch
from .logging import configure_logging, get_logger, redact_mapping
from .models import Post, decode_all, decode_posts, decode_short, decode_suggest


ENV_PREFIX = "PINBOARD_"
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class CliError(Exception):
    """Raised when the CLI encounters an expected error condition."""


@dataclass(frozen=True)
class ClientConfig:
    """Configuration shared by every command of one invocation."""

    username: str
    token: str
    raw_json: bool = False
    show_date: bool = False
    base_url: str = DEFAULT_BASE_URL
    timeout: float = HANDSHAKE_TIMEOUT

    def logging_dict(self) -> Dict[str, Any]:
        """Return a sanitized mapping suitable for structured logging."""

        return redact_mapping(asdict(self))


Handler = Callable[[ClientConfig, httpx.Client, argparse.Namespace], None]


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _absolute_url(value: str) -> str:
    parts = urlsplit(value)
    if not parts.scheme or not parts.netloc:
        raise argparse.ArgumentTypeError(f"invalid URL: {value!r}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pinboard-cli",
        description="A command line client for the pinboard.in bookmarks service.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--username",
        metavar="PINBOARD-USERNAME",
        default=_env("USERNAME"),
        help=f"Pinboard username (default: ${ENV_PREFIX}USERNAME).",
    )
    parser.add_argument(
        "--token",
        metavar="PINBOARD-API-TOKEN",
        default=_env("API_TOKEN"),
        help=f"Pinboard API token (default: ${ENV_PREFIX}API_TOKEN).",
    )
    parser.add_argument(
        "--json",
        dest="raw_json",
        action="store_true",
        help="Print the JSON response as it is.",
    )
    parser.add_argument(
        "--show-date",
        action="store_true",
        help="Show date when bookmark was added.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Diagnostic log level written to stderr (default: WARNING).",
    )
    parser.add_argument(
        "--log-format",
        default="plain",
        choices=["plain", "json"],
        help="Diagnostic log format (default: plain).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    _add_read_commands(subparsers)
    _add_write_commands(subparsers)
    return parser


def _add_read_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    recent = subparsers.add_parser("recent", help="Show URLs added lately.")
    recent.add_argument("--count", type=int, help="Number of shown URLs (default 15).")
    recent.add_argument(
        "--tag", help="Filter recent URLs by tags (up to 3, comma separated)."
    )
    recent.set_defaults(func=_cmd_recent)

    all_cmd = subparsers.add_parser("all", help="Show all URLs.")
    all_cmd.add_argument("--start", type=int, help="Offset value (default is 0).")
    all_cmd.add_argument(
        "--results", type=int, help="Number of results to be printed (default is all)."
    )
    all_cmd.add_argument("--tag", help="Filter URLs by tags (up to 3, comma separated).")
    all_cmd.add_argument(
        "--from-date",
        dest="from_date",
        help="Only bookmarks since given date. UTC format (ie. 2010-12-11T19:48:02Z).",
    )
    all_cmd.add_argument(
        "--till-date",
        dest="till_date",
        help="Only bookmarks till given date. Same format as --from-date.",
    )
    all_cmd.set_defaults(func=_cmd_all)

    get = subparsers.add_parser("get", help="Show one or more URLs from a single day.")
    get.add_argument("--url", help="Return bookmark for given URL.")
    get.add_argument("--tag", help="Return bookmarks only for given tag(s).")
    get.add_argument("--date", help="Return bookmarks for given day (ie. 2016-06-11).")
    get.set_defaults(func=_cmd_get)

    suggest = subparsers.add_parser("suggest", help="Show suggested tags for given URL.")
    suggest.add_argument(
        "--url", required=True, type=_absolute_url, help="URL to offer suggested tags for."
    )
    suggest.set_defaults(func=_cmd_suggest)


def _add_write_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    add = subparsers.add_parser("add", help="Add new URL.")
    add.add_argument("--url", required=True, type=_absolute_url, help="URL to add.")
    add.add_argument("--title", required=True, help="Title of the URL.")
    add.add_argument("--description", help="Extended description of the URL.")
    add.add_argument("--tags", help="Up to 100 tags (comma separated).")
    add.add_argument(
        "--no-replace",
        dest="no_replace",
        action="store_true",
        help="Don't replace an existing URL.",
    )
    add.add_argument(
        "--private", action="store_true", help="Make URL private (default is public)."
    )
    add.add_argument("--unread", action="store_true", help="Mark the URL as unread.")
    add.set_defaults(func=_cmd_add)

    delete = subparsers.add_parser("delete", help="Delete URL.")
    delete.add_argument("--url", required=True, type=_absolute_url, help="URL to delete.")
    delete.set_defaults(func=_cmd_delete)


def _load_config(args: argparse.Namespace) -> ClientConfig:
    logger = get_logger("pinboard.cli")
    username = args.username or ""
    token = args.token or ""
    if not username or not token:
        logger.warning(
            "Pinboard credentials are incomplete; the API will reject the request",
            extra={"username_set": bool(username), "token_set": bool(token)},
        )
    config = ClientConfig(
        username=username,
        token=token,
        raw_json=args.raw_json,
        show_date=args.show_date,
    )
    logger.debug("Loaded client configuration", extra={"config": config.logging_dict()})
    return config


def _optional(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _fetch(
    config: ClientConfig,
    client: httpx.Client,
    resource: str,
    params: Dict[str, Optional[str]],
    required: Sequence[str] = (),
) -> Optional[bytes]:
    """Fetch `resource`; in raw JSON mode print the body and return None."""

    url = build_url(
        resource,
        params,
        config.username,
        config.token,
        base_url=config.base_url,
        required=required,
    )
    body = fetch(client, url)
    if config.raw_json:
        _print_raw(body)
        return None
    return body


def _print_raw(body: bytes) -> None:
    sys.stdout.flush()
    sys.stdout.buffer.write(body)
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()


def format_stamp(value: datetime) -> str:
    """Render `value` like Go's ``time.Stamp`` layout, e.g. ``Jan  2 15:04:05``."""

    return f"{_MONTHS[value.month - 1]} {value.day:>2} {value:%H:%M:%S}"


def _print_posts(posts: Sequence[Post], show_date: bool) -> None:
    for post in posts:
        if show_date:
            sys.stdout.write(f"{format_stamp(post.time)}, ")
        sys.stdout.write(f"{post.href}\n")


def _print_tags(label: str, tags: Sequence[str]) -> None:
    sys.stdout.write(f"{label}:\n")
    sys.stdout.write("".join(f"{tag}, " for tag in tags))
    sys.stdout.write("\n")


def _cmd_recent(config: ClientConfig, client: httpx.Client, args: argparse.Namespace) -> None:
    params = {"tag": args.tag, "count": _optional(args.count)}
    body = _fetch(config, client, "posts/recent", params)
    if body is None:
        return
    content = decode_posts(body)
    _print_posts(content.posts, config.show_date)


def _cmd_all(config: ClientConfig, client: httpx.Client, args: argparse.Namespace) -> None:
    params = {
        "start": _optional(args.start),
        "results": _optional(args.results),
        "tag": args.tag,
        "fromdt": args.from_date,
        "todt": args.till_date,
    }
    body = _fetch(config, client, "posts/all", params)
    if body is None:
        return
    posts = decode_all(body)
    _print_posts(posts, config.show_date)


def _cmd_get(config: ClientConfig, client: httpx.Client, args: argparse.Namespace) -> None:
    params = {"tag": args.tag, "dt": args.date, "url": args.url}
    body = _fetch(config, client, "posts/get", params)
    if body is None:
        return
    content = decode_posts(body)
    _print_posts(content.posts, config.show_date)


def _cmd_add(config: ClientConfig, client: httpx.Client, args: argparse.Namespace) -> None:
    params: Dict[str, Optional[str]] = {
        "url": args.url,
        "description": args.title,
        "extended": args.description,
        "tags": args.tags,
    }
    if args.no_replace:
        params["replace"] = "no"
    if args.private:
        params["shared"] = "no"
    if args.unread:
        params["toread"] = "yes"
    body = _fetch(config, client, "posts/add", params, required=("url", "description"))
    if body is None:
        return
    sys.stdout.write(f"{decode_short(body).result_code}\n")


def _cmd_delete(config: ClientConfig, client: httpx.Client, args: argparse.Namespace) -> None:
    body = _fetch(config, client, "posts/delete", {"url": args.url}, required=("url",))
    if body is None:
        return
    sys.stdout.write(f"{decode_short(body).result_code}\n")


def _cmd_suggest(config: ClientConfig, client: httpx.Client, args: argparse.Namespace) -> None:
    body = _fetch(config, client, "posts/suggest", {"url": args.url}, required=("url",))
    if body is None:
        return
    content = decode_suggest(body)
    _print_tags("Popular", content.popular)
    _print_tags("Recommended", content.recommended)


def dispatch(config: ClientConfig, client: httpx.Client, args: argparse.Namespace) -> None:
    """Run the single handler bound to the parsed command."""

    func: Optional[Handler] = getattr(args, "func", None)
    if func is None:
        raise CliError(f"Unknown command: {getattr(args, 'command', None)}")
    get_logger("pinboard.cli").debug("Dispatching command", extra={"command": args.command})
    func(config, client, args)


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(args=argv)
    configure_logging(args.log_level, args.log_format)

    try:
        config = _load_config(args)
        client = build_client(config.timeout)
        with client:
            dispatch(config, client, args)
    except (CliError, PinboardError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()

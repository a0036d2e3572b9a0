"""Entrypoint for ``python -m pinboard_cli``."""

from .cli import main


if __name__ == "__main__":
    main()

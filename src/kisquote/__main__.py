"""CLI entrypoint for kisquote."""

import kisquote.cli.init  # noqa: F401
import kisquote.cli.quote_cmd  # noqa: F401
import kisquote.cli.serve  # noqa: F401
from kisquote.cli.main import cli


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

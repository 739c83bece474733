"""Click CLI group for kisquote."""

import click


@click.group()
@click.version_option(package_name="kisquote")
def cli() -> None:
    """kisquote: Korea Investment & Securities domestic stock quotations."""

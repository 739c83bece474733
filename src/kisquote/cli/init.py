"""kis init: interactive setup wizard."""

import click
from pydantic import ValidationError

from kisquote.cli.main import cli
from kisquote.config import KisConfig, config_path, ensure_dirs, load_config, save_config
from kisquote.errors import ConfigError
from kisquote.types import Environment


@cli.command()
def init() -> None:
    """Set up kisquote: store app credentials, account and environment."""
    click.echo()
    click.echo("kisquote Setup")
    click.echo("==============")
    click.echo()

    ensure_dirs()
    path = config_path()
    try:
        current = load_config(path)
    except ConfigError as e:
        click.echo(f"  ⚠ Ignoring invalid config: {e}")
        current = KisConfig()

    if path.exists():
        click.echo(f"  Config already exists at {path}")
        if not click.confirm("  Overwrite existing config?", default=False):
            click.echo("  Keeping existing config.")
            return

    environment = click.prompt(
        "  Environment",
        default=current.environment.value,
        type=click.Choice([e.value for e in Environment]),
    )
    appkey = click.prompt("  App key", default=current.appkey or None)
    appsecret = click.prompt("  App secret", hide_input=True)
    cano = click.prompt(
        "  Account number (8 digits)", default=current.cano, value_proc=_digits(8)
    )
    acnt_prdt_cd = click.prompt(
        "  Account product code (2 digits)", default=current.acnt_prdt_cd, value_proc=_digits(2)
    )
    access_token = click.prompt(
        "  Access token (leave blank to supply KIS_ACCESS_TOKEN later)",
        default="",
        show_default=False,
    )

    try:
        config = KisConfig.model_validate(
            {
                **current.model_dump(),
                "environment": Environment(environment),
                "appkey": appkey,
                "appsecret": appsecret,
                "cano": cano,
                "acnt_prdt_cd": acnt_prdt_cd,
                "access_token": access_token or None,
            }
        )
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e
    saved = save_config(config, path)

    click.echo(f"  ✓ Config written to {saved} (owner-read only)")
    click.echo()
    click.echo("Ready. Try: kis quote daily 005930")


def _digits(n: int):
    """Prompt value check: exactly ``n`` digits, re-prompting otherwise."""

    def check(value: str) -> str:
        value = value.strip()
        if len(value) != n or not value.isdigit():
            raise click.BadParameter(f"expected {n} digits, got {value!r}")
        return value

    return check

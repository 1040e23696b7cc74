"""Configuration display command."""

from __future__ import annotations

import json
from typing import Annotated

import typer

from catalog_sync.cli._helpers import get_config


def show_config(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the effective configuration."""
    config = get_config()
    data = config.to_dict()
    if json_output:
        typer.echo(json.dumps(data, indent=2))
        return

    typer.secho(f"Config: {config.config_path}", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"  store:       {data['db_path']}")
    typer.echo(f"  api:         {data['api']['base_url']}")
    typer.echo(f"  timeout:     {data['api']['timeout_seconds']}s")
    typer.echo(f"  api key:     {'set' if data['api']['api_key'] else 'not set'}")
    typer.echo(f"  updated by:  {data['api']['updated_by']}")
    typer.echo("  sync:")
    for key, value in data["sync"].items():
        typer.echo(f"    {key} = {value}")

"""catalog-sync CLI main entry point."""

from __future__ import annotations

from typing import Annotated

import typer

from catalog_sync.cli._helpers import configure_logging
from catalog_sync.cli.commands import config_cmd, listing, sync_cmd

app = typer.Typer(
    name="catalog-sync",
    help="catalog-sync - offline-first product and category synchronization",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    configure_logging(verbose)


app.command("sync")(sync_cmd.sync)
app.command("watch")(sync_cmd.watch)
app.command("status")(sync_cmd.status)
app.command("products")(listing.list_products)
app.command("categories")(listing.list_categories)
app.command("config")(config_cmd.show_config)


@app.command()
def version() -> None:
    """Show version information."""
    from catalog_sync import __version__

    typer.echo(f"catalog-sync v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()

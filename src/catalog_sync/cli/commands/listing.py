"""Local record listing commands."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.table import Table

from catalog_sync.cli._helpers import console, get_config, run_async
from catalog_sync.core.category import Category
from catalog_sync.core.ordering import sort_categories_for_display, sort_products_for_display
from catalog_sync.core.product import Product
from catalog_sync.storage.sqlite_store import SQLiteLocalStore


async def _load_products() -> list[Product]:
    async with SQLiteLocalStore(get_config().db_path) as store:
        return sort_products_for_display(await store.get_products())


async def _load_categories() -> list[Category]:
    async with SQLiteLocalStore(get_config().db_path) as store:
        return sort_categories_for_display(await store.get_categories())


def list_products(
    pending_only: Annotated[
        bool, typer.Option("--pending", "-p", help="Only records awaiting sync")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List products in the local store, pending ones first."""
    products = run_async(_load_products())
    if pending_only:
        products = [p for p in products if p.pending_sync]

    if json_output:
        typer.echo(json.dumps([p.to_dict() for p in products], indent=2))
        return
    if not products:
        typer.echo("No products.")
        return

    table = Table(title=f"Products ({len(products)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Category")
    table.add_column("Pending", justify="center")
    for p in products:
        category = p.category_name or p.category_id or ""
        table.add_row(
            p.id,
            p.name,
            f"{p.price:.2f}",
            category,
            "[yellow]yes[/yellow]" if p.pending_sync else "",
        )
    console.print(table)


def list_categories(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List categories in the local store, newest first."""
    categories = run_async(_load_categories())

    if json_output:
        typer.echo(json.dumps([c.to_dict() for c in categories], indent=2))
        return
    if not categories:
        typer.echo("No categories.")
        return

    table = Table(title=f"Categories ({len(categories)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Pending", justify="center")
    for c in categories:
        table.add_row(c.id, c.name, "[yellow]yes[/yellow]" if c.pending_sync else "")
    console.print(table)

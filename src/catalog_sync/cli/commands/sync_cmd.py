"""Sync, watch and status commands."""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

import typer

from catalog_sync.cli._helpers import console, get_config, output_result, run_async
from catalog_sync.runtime import open_runtime
from catalog_sync.sync.connectivity import ConnectivityProbe
from catalog_sync.sync.gate import ready_for_primary_sync
from catalog_sync.sync.protocol import DataSyncedEvent, SyncReport, SyncStatus, SyncTrigger


def sync(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Run one reconciliation pass now.

    Pushes queued deletions, resolves categories created offline, pushes
    pending products, then refreshes the local store from the server.

    Examples:
        catalog-sync sync
        catalog-sync sync --json
    """

    async def _sync() -> SyncReport:
        async with open_runtime(get_config()) as runtime:
            return await runtime.coordinator.run_once(SyncTrigger.MANUAL)

    report = run_async(_sync())
    output_result(report.to_dict(), json_output)
    if report.status == SyncStatus.ERROR:
        raise typer.Exit(1)


def watch(
    duration: Annotated[
        float | None,
        typer.Option("--duration", "-d", help="Stop after this many seconds"),
    ] = None,
) -> None:
    """Keep syncing: probe connectivity and run whenever the API comes back.

    Examples:
        catalog-sync watch
        catalog-sync watch --duration 60
    """

    async def _watch() -> None:
        config = get_config()
        async with open_runtime(config, online=False) as runtime:

            def _report(event: DataSyncedEvent) -> None:
                console.print(
                    f"[green]synced[/green] {len(event.products)} products, "
                    f"{len(event.categories)} categories"
                )

            runtime.observers.on(_report)
            runtime.coordinator.start()
            probe = ConnectivityProbe(
                runtime.connectivity,
                runtime.client.ping,
                interval_seconds=config.sync.probe_interval_seconds,
            )
            probe.start()
            try:
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)
            finally:
                await probe.stop()

    try:
        run_async(_watch())
    except KeyboardInterrupt:
        typer.echo("Stopped.")


def status(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show what is waiting to be synced.

    Examples:
        catalog-sync status
    """

    async def _status() -> dict[str, Any]:
        async with open_runtime(get_config(), online=False) as runtime:
            store = runtime.store
            stats = await store.get_stats()
            products = await store.get_products()
            categories = await store.get_categories()
            return {
                **stats,
                "temporary_products": sum(1 for p in products if p.is_temporary),
                "temporary_categories": sum(1 for c in categories if c.is_temporary),
                "categories_settled": await ready_for_primary_sync(store),
                "store": str(store.db_path),
            }

    output_result(run_async(_status()), json_output)

"""Shared CLI helpers for configuration, event loop and output formatting."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer
from rich.console import Console

from catalog_sync.config import CatalogSyncConfig

T = TypeVar("T")

console = Console()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )


def get_config() -> CatalogSyncConfig:
    """Load configuration fresh from disk for each command."""
    return CatalogSyncConfig.load()


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async CLI command.

    Yields once before the loop closes so callbacks queued by aiosqlite's
    worker thread are drained first.
    """

    async def _with_drain() -> T:
        try:
            return await coro
        finally:
            await asyncio.sleep(0)

    return asyncio.run(_with_drain())


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Print a flat result dict as JSON or as aligned key/value lines."""
    if as_json:
        typer.echo(json.dumps(data, indent=2, default=str))
        return
    width = max((len(key) for key in data), default=0)
    for key, value in data.items():
        typer.echo(f"{key.ljust(width)}  {value}")

#!/usr/bin/env python3
"""
SuperSwap Indexer Worker - Main Entry Point

Attributes cross-chain swaps (token A -> bridge asset -> token B) from
decoded mailbox, router and pool events across Superchain networks.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Dict, Any, Optional
import structlog
import click
from pydantic import ValidationError
from datetime import datetime, timezone

# Add current directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import get_settings, load_chain_configs, chain_id_for_domain
from models.entities import ENTITY_TYPES
from models.events import parse_event
from repositories.base import EntityRepository
from repositories.memory import InMemoryEntityRepository
from repositories.mongodb import MongoEntityRepository
from services.event_router import EventRouter
from services.superswap_service import SuperSwapService
from utils.errors import UnsupportedEventError
from utils.logging import configure_logging


logger = structlog.get_logger()


class SuperSwapWorker:
    """Wires the entity store, attribution service and event router together."""

    def __init__(self, use_memory_store: bool = False):
        self.settings = get_settings()

        if use_memory_store:
            self.store: EntityRepository = InMemoryEntityRepository()
        else:
            self.store = MongoEntityRepository(
                self.settings.mongodb_url,
                self.settings.mongodb_database,
                self.settings.store_connect_attempts
            )

        self.superswap_service = SuperSwapService(self.store, self.settings.bridge_asset_address)
        self.router = EventRouter(self.store, self.superswap_service)

        logger.info("SuperSwapWorker initialized",
                   store=type(self.store).__name__,
                   bridge_asset=self.settings.bridge_asset_address,
                   settings_log_level=self.settings.log_level,
                   settings_log_format=self.settings.log_format)

    async def start(self) -> None:
        await self.store.connect()

    async def stop(self) -> None:
        await self.store.disconnect()
        logger.info("SuperSwap Indexer Worker stopped")

    async def replay(self, events_file: Path) -> Dict[str, int]:
        """Feed a JSON-lines file of decoded events through the router, in file order."""
        stats = {"processed": 0, "skipped": 0}

        with open(events_file, 'r') as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    event = parse_event(json.loads(line))
                except UnsupportedEventError as e:
                    logger.warning("Skipping unsupported event",
                                  line=line_number,
                                  error=str(e))
                    stats["skipped"] += 1
                    continue
                except (json.JSONDecodeError, KeyError, ValidationError) as e:
                    logger.warning("Skipping malformed event",
                                  line=line_number,
                                  error=str(e),
                                  error_type=type(e).__name__)
                    stats["skipped"] += 1
                    continue

                await self.router.dispatch(event)
                stats["processed"] += 1

        logger.info("Replay completed", file=str(events_file), **stats)
        return stats

    async def entity_counts(self) -> Dict[str, int]:
        counts = await asyncio.gather(*[self.store.count(entity_type) for entity_type in ENTITY_TYPES])
        return {
            entity_type.collection_name: count
            for entity_type, count in zip(ENTITY_TYPES, counts)
        }

    async def health_check(self) -> Dict[str, Any]:
        """Get health status of the entity store."""
        healthy = await self.store.health_check()
        return {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "store": type(self.store).__name__
        }


def _setup_logging(log_level: Optional[str], log_format: Optional[str]) -> None:
    settings = get_settings()
    try:
        configure_logging(log_level or settings.log_level, log_format or settings.log_format)
    except Exception as e:
        print(f"Logging configuration failed: {e}")
        sys.exit(1)


# CLI Commands
@click.group()
def cli():
    """SuperSwap Indexer Worker CLI"""
    pass


@cli.command()
@click.argument('events_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--memory', is_flag=True, help='Use the in-memory store instead of MongoDB')
@click.option('--log-format', type=click.Choice(['json', 'console']), help='Log output format (overrides SUPERSWAP_LOG_FORMAT)')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']), help='Log level (overrides SUPERSWAP_LOG_LEVEL)')
def replay(events_file: Path, memory: bool = False, log_format: str = None, log_level: str = None):
    """Replay decoded events from a JSON-lines file."""
    _setup_logging(log_level, log_format)

    async def run():
        worker = SuperSwapWorker(use_memory_store=memory)
        await worker.start()
        try:
            stats = await worker.replay(events_file)
            counts = await worker.entity_counts()
        finally:
            await worker.stop()
        return stats, counts

    try:
        stats, counts = asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Replay interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error("Replay failed", error=str(e))
        click.echo(f"Error: {e}")
        sys.exit(1)

    click.echo(f"Events processed: {stats['processed']}")
    click.echo(f"Events skipped: {stats['skipped']}")
    for collection, count in counts.items():
        click.echo(f"  {collection}: {count}")


@cli.command()
@click.argument('tx_hash')
@click.option('--timestamp', type=int, required=True, help='Block timestamp (Unix seconds) to stamp on a new SuperSwap')
def reprocess(tx_hash: str, timestamp: int):
    """Re-run attribution for a stored source transaction."""
    _setup_logging(None, None)

    async def run():
        worker = SuperSwapWorker()
        await worker.start()
        try:
            return await worker.superswap_service.reprocess_source_transaction(tx_hash, timestamp)
        finally:
            await worker.stop()

    try:
        found = asyncio.run(run())
    except Exception as e:
        logger.error("Reprocess failed", transaction_hash=tx_hash, error=str(e))
        click.echo(f"Error: {e}")
        sys.exit(1)

    if not found:
        click.echo(f"No bridged transfer stored for {tx_hash}")
        sys.exit(1)
    click.echo(f"Reprocessed {tx_hash}")


@cli.command()
def health():
    """Check health of the entity store."""
    async def check_health():
        worker = SuperSwapWorker()
        try:
            await worker.start()
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

        try:
            return await worker.health_check()
        finally:
            await worker.stop()

    try:
        health_status = asyncio.run(check_health())

        click.echo(f"Status: {health_status['status']}")
        if health_status.get('timestamp'):
            click.echo(f"Timestamp: {health_status['timestamp']}")
        if health_status.get('error'):
            click.echo(f"Error: {health_status['error']}")

        if health_status['status'] != 'healthy':
            sys.exit(1)

    except Exception as e:
        click.echo(f"Health check failed: {e}")
        sys.exit(1)


@cli.command()
def config():
    """Show current configuration."""
    settings = get_settings()
    chain_configs = load_chain_configs()

    click.echo("=== SuperSwap Indexer Configuration ===\n")

    click.echo("Settings:")
    for key, value in settings.model_dump().items():
        if 'url' in key.lower() or 'password' in key.lower():
            # Mask sensitive information
            value = "***masked***"
        click.echo(f"  {key}: {value}")

    click.echo(f"\nSupported Chains ({len(chain_configs)}):")
    for chain_id, chain_config in chain_configs.items():
        click.echo(f"  {chain_id}: {chain_config.name}")
        click.echo(f"    Domain: {chain_config.domain} (resolves to chain {chain_id_for_domain(chain_config.domain, chain_configs)})")
        click.echo(f"    Mailbox: {chain_config.mailbox_address or 'not configured'}")
        click.echo(f"    Universal Router: {chain_config.router_address or 'not configured'}")
        click.echo(f"    Start Block: {chain_config.start_block}")


@cli.command()
@click.option('--log-format', type=click.Choice(['json', 'console']), default='console', help='Log output format')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']), default='DEBUG', help='Log level')
def test_logging(log_format: str, log_level: str):
    """Emit sample log lines to check the logging setup."""
    configure_logging(log_level, log_format)
    test_logger = structlog.get_logger()

    test_logger.debug("Debug message", component="test")
    test_logger.info("Info message", component="test", bridge_asset=get_settings().bridge_asset_address)
    test_logger.warning("Warning message", component="test")
    test_logger.error("Error message", component="test")

    click.echo(f"Logging configured: level={log_level}, format={log_format}")


if __name__ == "__main__":
    cli()

"""Idempotent creation of SuperSwap records."""

from datetime import datetime, timezone
from typing import Optional
import structlog

from models.entities import BridgedTransfer, LocalSwap, SuperSwap
from repositories.base import EntityRepository


logger = structlog.get_logger()


def build_superswap_id(
    source_tx_hash: str,
    origin_chain_id: int,
    destination_domain: int,
    bridge_asset_amount: int,
    message_id: str,
    source_swap: LocalSwap
) -> str:
    """Composite id: identical inputs always map to the same record."""
    return "_".join(str(part) for part in (
        source_tx_hash,
        origin_chain_id,
        destination_domain,
        bridge_asset_amount,
        message_id,
        source_swap.token_in_pool,
        source_swap.amount_in,
        source_swap.token_out_pool,
        source_swap.amount_out,
    )).lower()


async def create_superswap(
    store: EntityRepository,
    source_tx_hash: str,
    origin_chain_id: int,
    destination_domain: int,
    bridged_transfer: BridgedTransfer,
    message_id: str,
    source_swap: LocalSwap,
    source_chain_token: str,
    source_chain_token_amount: int,
    destination_chain_token: str,
    destination_chain_token_amount: int,
    block_timestamp: int
) -> Optional[SuperSwap]:
    """Write the SuperSwap unless one already exists for the same id.

    Returns the new record, or None when the attribution was already stored.
    """
    superswap_id = build_superswap_id(
        source_tx_hash,
        origin_chain_id,
        destination_domain,
        bridged_transfer.amount,
        message_id,
        source_swap
    )

    existing = await store.get(SuperSwap, superswap_id)
    if existing is not None:
        logger.info("SuperSwap already exists, skipping creation",
                   transaction_hash=source_tx_hash,
                   message_id=message_id,
                   superswap_id=superswap_id)
        return None

    superswap = SuperSwap(
        id=superswap_id,
        origin_chain_id=origin_chain_id,
        destination_chain_id=destination_domain,
        sender=bridged_transfer.sender,
        recipient=bridged_transfer.recipient,
        bridge_asset_amount=bridged_transfer.amount,
        source_chain_token=source_chain_token,
        source_chain_token_amount_swapped=source_chain_token_amount,
        destination_chain_token=destination_chain_token,
        destination_chain_token_amount_swapped=destination_chain_token_amount,
        timestamp=datetime.fromtimestamp(block_timestamp, tz=timezone.utc)
    )
    await store.set(superswap)

    logger.info("Created SuperSwap",
               superswap_id=superswap_id,
               origin_chain_id=origin_chain_id,
               destination_chain_id=destination_domain,
               message_id=message_id)
    return superswap

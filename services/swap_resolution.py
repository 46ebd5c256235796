"""Locate the bridge-asset swap leg on each side of a cross-chain swap."""

import asyncio
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from pydantic import BaseModel
import structlog

from models.entities import BridgeDispatch, BridgeProcess, LocalSwap
from repositories.base import EntityRepository


logger = structlog.get_logger()


class SourceSwapMatch(BaseModel):
    """Swap into the bridge asset on the source chain."""

    swap: LocalSwap
    token: str
    amount: int


class DestinationSwapMatch(BaseModel):
    """Swap out of the bridge asset on the destination chain."""

    swap: LocalSwap
    message_id: str
    token: str
    amount: int


async def find_source_swap(
    store: EntityRepository,
    source_tx_hash: str,
    bridge_asset: str
) -> Optional[SourceSwapMatch]:
    """Return the first swap of the source transaction with its non-bridge leg.

    Stored swaps are pre-filtered to the bridge asset, but the first swap
    still has to touch it.
    """
    swaps = await store.get_where(LocalSwap, "transaction_hash", source_tx_hash)
    if not swaps:
        logger.warning("No source swap with bridge asset found",
                      transaction_hash=source_tx_hash)
        return None

    # TODO: select the outer leg of multi-hop routes once the rule for several bridge-asset swaps per tx is settled
    swap = swaps[0]
    if not swap.touches(bridge_asset):
        logger.warning("Source swap does not involve bridge asset",
                      transaction_hash=source_tx_hash,
                      swap_id=swap.id)
        return None

    token, amount = swap.non_bridge_leg(bridge_asset)
    return SourceSwapMatch(swap=swap, token=token, amount=amount)


async def load_destination_swaps(
    store: EntityRepository,
    tx_hashes: Iterable[str]
) -> Dict[str, List[LocalSwap]]:
    """Load swaps for every destination transaction concurrently.

    Every requested hash is present in the result, mapped to [] when the
    transaction has no stored swaps.
    """
    tx_hashes = list(tx_hashes)
    results = await asyncio.gather(*[
        store.get_where(LocalSwap, "transaction_hash", tx_hash)
        for tx_hash in tx_hashes
    ])
    return dict(zip(tx_hashes, results))


def find_destination_swap(
    dispatches: Sequence[BridgeDispatch],
    message_id_to_process: Mapping[str, BridgeProcess],
    tx_hash_to_swaps: Mapping[str, Sequence[LocalSwap]],
    bridge_asset: str
) -> Optional[DestinationSwapMatch]:
    """Walk dispatches in order and return the first bridge-asset swap they lead to.

    One source transaction may dispatch several messages that land in
    different destination transactions; only one of those carries the swap
    out of the bridge asset. Dead ends are skipped, never fatal.
    """
    for dispatch in dispatches:
        process = message_id_to_process.get(dispatch.message_id)
        if process is None:
            logger.warning("No process event found for message",
                          message_id=dispatch.message_id)
            continue

        swaps = tx_hash_to_swaps.get(process.transaction_hash) or []
        if not swaps:
            logger.warning("No destination swaps found for transaction",
                          transaction_hash=process.transaction_hash,
                          message_id=dispatch.message_id)
            continue

        # Scan past swaps without the bridge asset; a later one in the same tx may carry it
        for swap in swaps:
            if not swap.touches(bridge_asset):
                logger.warning("Destination swap does not involve bridge asset",
                              transaction_hash=process.transaction_hash,
                              swap_id=swap.id)
                continue

            token, amount = swap.non_bridge_leg(bridge_asset)
            return DestinationSwapMatch(
                swap=swap,
                message_id=dispatch.message_id,
                token=token,
                amount=amount
            )

    logger.warning("No destination swap with bridge asset found for any candidate transaction",
                  dispatch_count=len(dispatches))
    return None

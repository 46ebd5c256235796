"""Dispatch/process correlation by message id."""

import asyncio
from typing import Dict, List, Sequence, Set, Tuple
import structlog

from models.entities import BridgeDispatch, BridgeProcess
from repositories.base import EntityRepository


logger = structlog.get_logger()


def correlate_messages(
    dispatches: Sequence[BridgeDispatch],
    process_candidates_per_dispatch: Sequence[Sequence[BridgeProcess]]
) -> Tuple[Dict[str, BridgeProcess], Set[str]]:
    """Index process confirmations by message id and collect destination tx hashes.

    Candidates are matched on their ``message_id`` field, not their position,
    so the outer list does not have to line up with ``dispatches``. Each
    dispatch without a confirmation gets exactly one warning; that is the
    normal state until the destination chain catches up.
    """
    message_id_to_process: Dict[str, BridgeProcess] = {}
    destination_tx_hashes: Set[str] = set()

    for candidates in process_candidates_per_dispatch:
        for process in candidates:
            message_id_to_process[process.message_id] = process
            destination_tx_hashes.add(process.transaction_hash)

    for dispatch in dispatches:
        if dispatch.message_id not in message_id_to_process:
            logger.warning("No process event found for message",
                          message_id=dispatch.message_id,
                          source_transaction_hash=dispatch.transaction_hash)

    return message_id_to_process, destination_tx_hashes


async def load_process_candidates(
    store: EntityRepository,
    dispatches: Sequence[BridgeDispatch]
) -> List[List[BridgeProcess]]:
    """Query process confirmations for every dispatch concurrently, in dispatch order."""
    return list(await asyncio.gather(*[
        store.get_where(BridgeProcess, "message_id", dispatch.message_id)
        for dispatch in dispatches
    ]))

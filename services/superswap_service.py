import asyncio
from typing import Sequence
import structlog

from models.entities import BridgeDispatch, BridgeProcess, BridgedTransfer, normalize_hex
from repositories.base import EntityRepository
from services.assembler import create_superswap
from services.correlation import correlate_messages, load_process_candidates
from services.swap_resolution import find_source_swap, load_destination_swaps, find_destination_swap
from utils.logging import log_async_function_call


logger = structlog.get_logger()


class SuperSwapService:
    """Attributes cross-chain swaps from dispatch, process and local swap records.

    Nothing about a transfer's progress is persisted: every call recomputes
    the correlation from the store, and the SuperSwap record itself is the
    only terminal marker. Re-running any entry point is therefore safe.
    """

    def __init__(self, store: EntityRepository, bridge_asset: str):
        self.store = store
        self.bridge_asset = normalize_hex(bridge_asset)

    @log_async_function_call
    async def process_cross_chain_swap(
        self,
        dispatches: Sequence[BridgeDispatch],
        process_candidates_per_dispatch: Sequence[Sequence[BridgeProcess]],
        bridged_transfer: BridgedTransfer,
        source_tx_hash: str,
        origin_chain_id: int,
        destination_domain: int,
        block_timestamp: int
    ) -> None:
        """Forward path: attribute a source transaction whose dispatches are known.

        Never raises: store failures are logged as warnings.
        """
        try:
            # Stable sort keeps caller order for equal log indexes
            ordered_dispatches = sorted(dispatches, key=lambda dispatch: dispatch.log_index)

            message_id_to_process, destination_tx_hashes = correlate_messages(
                ordered_dispatches,
                process_candidates_per_dispatch
            )

            source_match = await find_source_swap(self.store, source_tx_hash, self.bridge_asset)
            if source_match is None:
                logger.warning("Aborting attribution, no source swap",
                              transaction_hash=source_tx_hash)
                return

            tx_hash_to_swaps = await load_destination_swaps(self.store, destination_tx_hashes)

            destination_match = find_destination_swap(
                ordered_dispatches,
                message_id_to_process,
                tx_hash_to_swaps,
                self.bridge_asset
            )
            if destination_match is None:
                logger.warning("Aborting attribution, no destination swap",
                              transaction_hash=source_tx_hash)
                return

            await create_superswap(
                self.store,
                source_tx_hash,
                origin_chain_id,
                destination_domain,
                bridged_transfer,
                destination_match.message_id,
                source_match.swap,
                source_match.token,
                source_match.amount,
                destination_match.token,
                destination_match.amount,
                block_timestamp
            )
        except Exception as e:
            logger.warning("Error processing cross-chain swap",
                          transaction_hash=source_tx_hash,
                          error=str(e),
                          error_type=type(e).__name__)

    async def handle_cross_chain_swap(
        self,
        source_tx_hash: str,
        origin_chain_id: int,
        destination_domain: int,
        block_timestamp: int
    ) -> None:
        """Source-chain trigger: gather the transaction's context and run the forward path."""
        try:
            bridged_transfers, dispatches = await asyncio.gather(
                self.store.get_where(BridgedTransfer, "transaction_hash", source_tx_hash),
                self.store.get_where(BridgeDispatch, "transaction_hash", source_tx_hash)
            )

            if not bridged_transfers:
                logger.warning("No bridged transfer found for transaction",
                              transaction_hash=source_tx_hash)
                return

            if not dispatches:
                return

            process_candidates = await load_process_candidates(self.store, dispatches)

            await self.process_cross_chain_swap(
                dispatches,
                process_candidates,
                bridged_transfers[0],
                source_tx_hash,
                origin_chain_id,
                destination_domain,
                block_timestamp
            )
        except Exception as e:
            logger.warning("Error handling cross-chain swap",
                          transaction_hash=source_tx_hash,
                          error=str(e),
                          error_type=type(e).__name__)

    async def attempt_superswap_creation_from_process_id(self, message_id: str, block_timestamp: int) -> None:
        """Reactive path, run when a destination-chain process event arrives.

        Destination chains are often indexed ahead of source chains, so the
        source side is pulled in on demand. Never raises.
        """
        try:
            matching_dispatches = await self.store.get_where(BridgeDispatch, "message_id", message_id)
            if not matching_dispatches:
                logger.info("No matching dispatch yet, expected if the source chain hasn't synced",
                           message_id=message_id)
                return

            dispatch = matching_dispatches[0]
            source_tx_hash = dispatch.transaction_hash

            bridged_transfer, dispatches = await asyncio.gather(
                self.store.get(BridgedTransfer, source_tx_hash),
                self.store.get_where(BridgeDispatch, "transaction_hash", source_tx_hash)
            )

            if bridged_transfer is None:
                logger.warning("No bridged transfer found for transaction",
                              transaction_hash=source_tx_hash,
                              message_id=message_id)
                return

            if not dispatches:
                logger.warning("No dispatches found for transaction",
                              transaction_hash=source_tx_hash,
                              message_id=message_id)
                return

            process_candidates = await load_process_candidates(self.store, dispatches)

            await self.process_cross_chain_swap(
                dispatches,
                process_candidates,
                bridged_transfer,
                source_tx_hash,
                dispatch.chain_id,
                bridged_transfer.destination_domain,
                block_timestamp
            )
        except Exception as e:
            logger.warning("Error attempting to create SuperSwap from process event",
                          message_id=message_id,
                          error=str(e),
                          error_type=type(e).__name__)

    async def reprocess_source_transaction(self, source_tx_hash: str, block_timestamp: int) -> bool:
        """Re-run the forward path for a stored transfer. Returns False if the transfer is unknown."""
        bridged_transfer = await self.store.get(BridgedTransfer, source_tx_hash)
        if bridged_transfer is None:
            logger.warning("No bridged transfer found for transaction",
                          transaction_hash=source_tx_hash)
            return False

        await self.handle_cross_chain_swap(
            bridged_transfer.transaction_hash,
            bridged_transfer.origin_chain_id,
            bridged_transfer.destination_domain,
            block_timestamp
        )
        return True


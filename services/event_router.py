"""Routes decoded chain events to their handlers."""

from typing import Awaitable, Callable, Dict, List, Optional
import structlog

from models.entities import BridgeDispatch, BridgeProcess, BridgedTransfer, LocalSwap, normalize_hex
from models.events import (
    EventKind,
    ChainEvent,
    DispatchIdEvent,
    ProcessIdEvent,
    BridgeEvent,
    CrossChainSwapEvent,
    PoolSwapEvent,
)
from repositories.base import EntityRepository
from services.superswap_service import SuperSwapService
from utils.errors import UnsupportedEventError


logger = structlog.get_logger()

EventHandler = Callable[[ChainEvent], Awaitable[None]]


def build_local_swap(event: PoolSwapEvent) -> Optional[LocalSwap]:
    """Turn a pool Swap into a directed LocalSwap.

    Token0 in wins when both sides report input. Returns None when the pool
    tokens are unknown or nothing went in.
    """
    if not event.token0 or not event.token1:
        return None

    if event.amount0_in > 0:
        token_in, amount_in = event.token0, event.amount0_in
        token_out, amount_out = event.token1, event.amount1_out
    elif event.amount1_in > 0:
        token_in, amount_in = event.token1, event.amount1_in
        token_out, amount_out = event.token0, event.amount0_out
    else:
        return None

    meta = event.meta
    return LocalSwap(
        id=LocalSwap.make_id(meta.transaction_hash, meta.chain_id, token_in, amount_in, token_out, amount_out),
        chain_id=meta.chain_id,
        transaction_hash=meta.transaction_hash,
        token_in_pool=token_in,
        token_out_pool=token_out,
        amount_in=amount_in,
        amount_out=amount_out,
        log_index=meta.log_index
    )


class EventRouter:
    """Maps each EventKind to the coroutine that handles it."""

    def __init__(self, store: EntityRepository, superswap_service: SuperSwapService):
        self.store = store
        self.superswap_service = superswap_service
        self.bridge_asset = superswap_service.bridge_asset
        self._handlers: Dict[EventKind, EventHandler] = {
            EventKind.DISPATCH_ID: self._handle_dispatch_id,
            EventKind.PROCESS_ID: self._handle_process_id,
            EventKind.BRIDGE: self._handle_bridge,
            EventKind.CROSS_CHAIN_SWAP: self._handle_cross_chain_swap,
            EventKind.POOL_SWAP: self._handle_pool_swap,
        }

    def supported_kinds(self) -> List[EventKind]:
        return list(self._handlers.keys())

    async def dispatch(self, event: ChainEvent) -> None:
        """Run the handler registered for the event's kind."""
        handler = self._handlers.get(event.kind)
        if handler is None:
            raise UnsupportedEventError(str(event.kind))

        logger.debug("Handling event",
                    kind=event.kind.value,
                    chain_id=event.meta.chain_id,
                    transaction_hash=event.meta.transaction_hash,
                    log_index=event.meta.log_index)
        await handler(event)

    async def _handle_dispatch_id(self, event: DispatchIdEvent) -> None:
        meta = event.meta
        await self.store.set(BridgeDispatch(
            id=BridgeDispatch.make_id(meta.transaction_hash, meta.chain_id, event.message_id),
            chain_id=meta.chain_id,
            transaction_hash=meta.transaction_hash,
            message_id=event.message_id,
            log_index=meta.log_index
        ))

    async def _handle_process_id(self, event: ProcessIdEvent) -> None:
        meta = event.meta
        await self.store.set(BridgeProcess(
            id=BridgeProcess.make_id(meta.transaction_hash, meta.chain_id, event.message_id),
            chain_id=meta.chain_id,
            transaction_hash=meta.transaction_hash,
            message_id=event.message_id,
            log_index=meta.log_index
        ))

        await self.superswap_service.attempt_superswap_creation_from_process_id(
            event.message_id,
            meta.block_timestamp
        )

    async def _handle_bridge(self, event: BridgeEvent) -> None:
        # Only transfers of the bridge asset can be part of a SuperSwap
        if normalize_hex(event.token) != self.bridge_asset:
            return

        meta = event.meta
        await self.store.set(BridgedTransfer(
            id=meta.transaction_hash,
            transaction_hash=meta.transaction_hash,
            origin_chain_id=meta.chain_id,
            destination_domain=event.domain,
            sender=event.sender,
            recipient=event.recipient,
            amount=event.amount
        ))

    async def _handle_cross_chain_swap(self, event: CrossChainSwapEvent) -> None:
        meta = event.meta
        await self.superswap_service.handle_cross_chain_swap(
            meta.transaction_hash,
            meta.chain_id,
            event.destination_domain,
            meta.block_timestamp
        )

    async def _handle_pool_swap(self, event: PoolSwapEvent) -> None:
        swap = build_local_swap(event)
        if swap is None:
            return

        if not swap.touches(self.bridge_asset):
            return

        await self.store.set(swap)

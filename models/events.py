from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, Type
from datetime import datetime, timezone
from enum import Enum

from utils.errors import UnsupportedEventError


class EventKind(str, Enum):
    """Decoded on-chain events the worker reacts to."""
    DISPATCH_ID = "dispatch_id"
    PROCESS_ID = "process_id"
    BRIDGE = "bridge"
    CROSS_CHAIN_SWAP = "cross_chain_swap"
    POOL_SWAP = "pool_swap"


class EventMeta(BaseModel):
    """Block and transaction context shared by every event."""

    chain_id: int = Field(..., description="Chain the log was emitted on")
    transaction_hash: str = Field(..., description="Transaction hash")
    block_number: int = Field(..., description="Block number")
    block_timestamp: int = Field(..., description="Block timestamp (Unix seconds)")
    log_index: int = Field(default=0, description="Log index in transaction")

    @property
    def block_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.block_timestamp, tz=timezone.utc)


class ChainEvent(BaseModel):
    """Base class for decoded events."""

    kind: EventKind
    meta: EventMeta


class DispatchIdEvent(ChainEvent):
    """Mailbox DispatchId(bytes32 messageId) on the source chain."""

    kind: EventKind = EventKind.DISPATCH_ID
    message_id: str = Field(..., description="Outbound message id")


class ProcessIdEvent(ChainEvent):
    """Mailbox ProcessId(bytes32 messageId) on the destination chain."""

    kind: EventKind = EventKind.PROCESS_ID
    message_id: str = Field(..., description="Delivered message id")


class BridgeEvent(ChainEvent):
    """Universal router UniversalRouterBridge(sender, recipient, token, amount, domain)."""

    kind: EventKind = EventKind.BRIDGE
    sender: str = Field(..., description="Sender address")
    recipient: str = Field(..., description="Recipient on the destination chain")
    token: str = Field(..., description="Bridged token address")
    amount: int = Field(..., description="Raw bridged amount")
    domain: int = Field(..., description="Destination messaging domain")


class CrossChainSwapEvent(ChainEvent):
    """Universal router CrossChainSwap marking a swap-then-bridge on the source chain."""

    kind: EventKind = EventKind.CROSS_CHAIN_SWAP
    destination_domain: int = Field(..., description="Destination messaging domain")


class PoolSwapEvent(ChainEvent):
    """V2-style pool Swap with the pool's token addresses attached by the decoder."""

    kind: EventKind = EventKind.POOL_SWAP
    pool_address: str = Field(..., description="Pool contract address")
    token0: Optional[str] = Field(None, description="Pool token0 address")
    token1: Optional[str] = Field(None, description="Pool token1 address")
    amount0_in: int = Field(default=0, description="Raw token0 sent in")
    amount0_out: int = Field(default=0, description="Raw token0 sent out")
    amount1_in: int = Field(default=0, description="Raw token1 sent in")
    amount1_out: int = Field(default=0, description="Raw token1 sent out")


EVENT_MODELS: Dict[EventKind, Type[ChainEvent]] = {
    EventKind.DISPATCH_ID: DispatchIdEvent,
    EventKind.PROCESS_ID: ProcessIdEvent,
    EventKind.BRIDGE: BridgeEvent,
    EventKind.CROSS_CHAIN_SWAP: CrossChainSwapEvent,
    EventKind.POOL_SWAP: PoolSwapEvent,
}


def parse_event(data: Dict[str, Any]) -> ChainEvent:
    """Build the typed event for a decoded payload, selected by its ``kind`` field."""
    try:
        kind = EventKind(data["kind"])
    except ValueError as e:
        raise UnsupportedEventError(data["kind"]) from e
    return EVENT_MODELS[kind](**data)

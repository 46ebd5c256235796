from pydantic import BaseModel, Field, field_validator
from typing import Any, ClassVar, FrozenSet, Optional, Tuple
from datetime import datetime


def normalize_hex(value: Optional[str]) -> Optional[str]:
    """Lowercase addresses and hashes so lookups and comparisons are case-insensitive."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


def normalize_field_value(value: Any) -> Any:
    # Addresses, hashes and ids are hex; leave other strings (timestamps) alone
    if isinstance(value, str) and value[:2].lower() == "0x":
        return normalize_hex(value)
    return value


class Entity(BaseModel):
    """Base class for everything kept in the entity store."""

    # Collection/table the entity lives in
    collection_name: ClassVar[str] = ""
    # Integer fields that may exceed 64 bits and are persisted as decimal strings
    amount_fields: ClassVar[FrozenSet[str]] = frozenset()

    id: str = Field(..., description="Deterministic entity identifier")

    @field_validator('*', mode='before')
    @classmethod
    def normalize_strings(cls, v):
        return normalize_field_value(v)

    class Config:
        frozen = True


class BridgeDispatch(Entity):
    """Outbound message emitted by the Mailbox on the source chain."""

    collection_name: ClassVar[str] = "bridge_dispatches"

    chain_id: int = Field(..., description="Source chain ID")
    transaction_hash: str = Field(..., description="Source transaction hash")
    message_id: str = Field(..., description="Messaging protocol message id")
    log_index: int = Field(default=0, description="Log index in transaction")

    @classmethod
    def make_id(cls, transaction_hash: str, chain_id: int, message_id: str) -> str:
        return f"{normalize_hex(transaction_hash)}_{chain_id}_{normalize_hex(message_id)}"


class BridgeProcess(Entity):
    """Inbound message delivery confirmed by the Mailbox on the destination chain."""

    collection_name: ClassVar[str] = "bridge_processes"

    chain_id: int = Field(..., description="Destination chain ID")
    transaction_hash: str = Field(..., description="Destination transaction hash")
    message_id: str = Field(..., description="Messaging protocol message id")
    log_index: int = Field(default=0, description="Log index in transaction")

    @classmethod
    def make_id(cls, transaction_hash: str, chain_id: int, message_id: str) -> str:
        return f"{normalize_hex(transaction_hash)}_{chain_id}_{normalize_hex(message_id)}"


class BridgedTransfer(Entity):
    """Bridge-asset transfer initiated by the universal router; id is the source tx hash."""

    collection_name: ClassVar[str] = "bridged_transfers"
    amount_fields: ClassVar[FrozenSet[str]] = frozenset({"amount"})

    transaction_hash: str = Field(..., description="Source transaction hash")
    origin_chain_id: int = Field(..., description="Source chain ID")
    destination_domain: int = Field(..., description="Messaging domain of the destination chain")
    sender: str = Field(..., description="Sender address")
    recipient: str = Field(..., description="Recipient address")
    amount: int = Field(..., description="Raw bridge asset amount")


class LocalSwap(Entity):
    """A single-chain swap with the bridge asset on at least one leg."""

    collection_name: ClassVar[str] = "local_swaps"
    amount_fields: ClassVar[FrozenSet[str]] = frozenset({"amount_in", "amount_out"})

    chain_id: int = Field(..., description="Chain the swap happened on")
    transaction_hash: str = Field(..., description="Transaction hash")
    token_in_pool: str = Field(..., description="Token sent into the pool")
    token_out_pool: str = Field(..., description="Token received from the pool")
    amount_in: int = Field(..., description="Raw amount of token_in_pool")
    amount_out: int = Field(..., description="Raw amount of token_out_pool")
    log_index: int = Field(default=0, description="Log index in transaction")

    @classmethod
    def make_id(
        cls,
        transaction_hash: str,
        chain_id: int,
        token_in: str,
        amount_in: int,
        token_out: str,
        amount_out: int
    ) -> str:
        return (
            f"{normalize_hex(transaction_hash)}_{chain_id}_"
            f"{normalize_hex(token_in)}_{amount_in}_{normalize_hex(token_out)}_{amount_out}"
        )

    def touches(self, asset: str) -> bool:
        asset = normalize_hex(asset)
        return self.token_in_pool == asset or self.token_out_pool == asset

    def non_bridge_leg(self, bridge_asset: str) -> Tuple[str, int]:
        """Return (token, amount) of the leg that is not the bridge asset."""
        if self.token_in_pool == normalize_hex(bridge_asset):
            return self.token_out_pool, self.amount_out
        return self.token_in_pool, self.amount_in


class SuperSwap(Entity):
    """Attributed cross-chain swap: token A -> bridge asset -> token B."""

    collection_name: ClassVar[str] = "super_swaps"
    amount_fields: ClassVar[FrozenSet[str]] = frozenset({
        "bridge_asset_amount",
        "source_chain_token_amount_swapped",
        "destination_chain_token_amount_swapped",
    })

    origin_chain_id: int = Field(..., description="Source chain ID")
    destination_chain_id: int = Field(..., description="Destination domain as reported by the bridge")
    sender: str = Field(..., description="Sender on the source chain")
    recipient: str = Field(..., description="Recipient on the destination chain")
    bridge_asset_amount: int = Field(..., description="Raw bridged amount")
    source_chain_token: str = Field(..., description="Token swapped into the bridge asset")
    source_chain_token_amount_swapped: int = Field(..., description="Raw source token amount")
    destination_chain_token: str = Field(..., description="Token received for the bridge asset")
    destination_chain_token_amount_swapped: int = Field(..., description="Raw destination token amount")
    timestamp: datetime = Field(..., description="Block timestamp of the triggering event")


ENTITY_TYPES = (BridgeDispatch, BridgeProcess, BridgedTransfer, LocalSwap, SuperSwap)

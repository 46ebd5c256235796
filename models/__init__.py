from .entities import (
    Entity,
    BridgeDispatch,
    BridgeProcess,
    BridgedTransfer,
    LocalSwap,
    SuperSwap,
    ENTITY_TYPES,
    normalize_hex,
    normalize_field_value,
)
from .events import (
    EventKind,
    EventMeta,
    ChainEvent,
    DispatchIdEvent,
    ProcessIdEvent,
    BridgeEvent,
    CrossChainSwapEvent,
    PoolSwapEvent,
    parse_event,
)

__all__ = [
    'Entity',
    'BridgeDispatch',
    'BridgeProcess',
    'BridgedTransfer',
    'LocalSwap',
    'SuperSwap',
    'ENTITY_TYPES',
    'normalize_hex',
    'normalize_field_value',
    'EventKind',
    'EventMeta',
    'ChainEvent',
    'DispatchIdEvent',
    'ProcessIdEvent',
    'BridgeEvent',
    'CrossChainSwapEvent',
    'PoolSwapEvent',
    'parse_event',
]

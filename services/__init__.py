from .superswap_service import SuperSwapService
from .event_router import EventRouter, build_local_swap

__all__ = [
    'SuperSwapService',
    'EventRouter',
    'build_local_swap',
]

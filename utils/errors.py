"""Exceptions raised by the SuperSwap Indexer Worker."""


class SuperSwapIndexerError(Exception):
    """Base class for worker errors."""


class StoreNotConnectedError(SuperSwapIndexerError):
    """Entity store used before connect() succeeded."""

    def __init__(self, store_name: str) -> None:
        super().__init__(f"{store_name} is not connected")
        self.store_name = store_name


class UnsupportedEventError(SuperSwapIndexerError):
    """No handler is registered for an event kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"No handler registered for event kind {kind!r}")
        self.kind = kind

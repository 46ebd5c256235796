"""Entity builders shared by the test modules."""

from models.entities import BridgeDispatch, BridgeProcess, BridgedTransfer, LocalSwap
from models.events import EventMeta


BRIDGE_ASSET = "0x1217bfe6c773eec6cc4a38b5dc45b92292b6e189"
TOKEN_A = "0x" + "aa" * 20
TOKEN_B = "0x" + "bb" * 20
TOKEN_C = "0x" + "cc" * 20
SENDER = "0x" + "51" * 20
RECIPIENT = "0x" + "52" * 20

SOURCE_CHAIN_ID = 10
DESTINATION_CHAIN_ID = 34443
DESTINATION_DOMAIN = 34443

SOURCE_TX = "0x" + "01" * 32
DESTINATION_TX = "0x" + "02" * 32
OTHER_DESTINATION_TX = "0x" + "03" * 32

MESSAGE_ID = "0x" + "a1" * 32
OTHER_MESSAGE_ID = "0x" + "a2" * 32
THIRD_MESSAGE_ID = "0x" + "a3" * 32

BLOCK_TIMESTAMP = 1_700_000_000


def make_dispatch(message_id=MESSAGE_ID, tx_hash=SOURCE_TX, chain_id=SOURCE_CHAIN_ID, log_index=0):
    return BridgeDispatch(
        id=BridgeDispatch.make_id(tx_hash, chain_id, message_id),
        chain_id=chain_id,
        transaction_hash=tx_hash,
        message_id=message_id,
        log_index=log_index,
    )


def make_process(message_id=MESSAGE_ID, tx_hash=DESTINATION_TX, chain_id=DESTINATION_CHAIN_ID, log_index=0):
    return BridgeProcess(
        id=BridgeProcess.make_id(tx_hash, chain_id, message_id),
        chain_id=chain_id,
        transaction_hash=tx_hash,
        message_id=message_id,
        log_index=log_index,
    )


def make_transfer(tx_hash=SOURCE_TX, amount=1000, destination_domain=DESTINATION_DOMAIN):
    return BridgedTransfer(
        id=tx_hash,
        transaction_hash=tx_hash,
        origin_chain_id=SOURCE_CHAIN_ID,
        destination_domain=destination_domain,
        sender=SENDER,
        recipient=RECIPIENT,
        amount=amount,
    )


def make_swap(token_in, amount_in, token_out, amount_out, tx_hash=SOURCE_TX, chain_id=SOURCE_CHAIN_ID, log_index=0):
    return LocalSwap(
        id=LocalSwap.make_id(tx_hash, chain_id, token_in, amount_in, token_out, amount_out),
        chain_id=chain_id,
        transaction_hash=tx_hash,
        token_in_pool=token_in,
        token_out_pool=token_out,
        amount_in=amount_in,
        amount_out=amount_out,
        log_index=log_index,
    )


def make_meta(tx_hash=SOURCE_TX, chain_id=SOURCE_CHAIN_ID, log_index=0, block_timestamp=BLOCK_TIMESTAMP):
    return EventMeta(
        chain_id=chain_id,
        transaction_hash=tx_hash,
        block_number=123,
        block_timestamp=block_timestamp,
        log_index=log_index,
    )

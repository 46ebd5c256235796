import pytest
from structlog.testing import capture_logs

from services.swap_resolution import find_source_swap, load_destination_swaps, find_destination_swap
from tests.factories import (
    make_dispatch,
    make_process,
    make_swap,
    BRIDGE_ASSET,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    SOURCE_TX,
    DESTINATION_TX,
    OTHER_DESTINATION_TX,
    DESTINATION_CHAIN_ID,
    MESSAGE_ID,
    OTHER_MESSAGE_ID,
    THIRD_MESSAGE_ID,
)


def destination_swap(token_in, amount_in, token_out, amount_out, tx_hash=DESTINATION_TX, log_index=0):
    return make_swap(token_in, amount_in, token_out, amount_out,
                     tx_hash=tx_hash, chain_id=DESTINATION_CHAIN_ID, log_index=log_index)


class TestFindSourceSwap:

    @pytest.mark.asyncio
    async def test_token_in_is_reported(self, store):
        swap = make_swap(TOKEN_A, 500, BRIDGE_ASSET, 1000)
        await store.set(swap)

        match = await find_source_swap(store, SOURCE_TX, BRIDGE_ASSET)

        assert match.swap == swap
        assert match.token == TOKEN_A
        assert match.amount == 500

    @pytest.mark.asyncio
    async def test_bridge_asset_in_reports_token_out(self, store):
        await store.set(make_swap(BRIDGE_ASSET, 1000, TOKEN_A, 480))

        match = await find_source_swap(store, SOURCE_TX, BRIDGE_ASSET)

        assert (match.token, match.amount) == (TOKEN_A, 480)

    @pytest.mark.asyncio
    async def test_no_swaps(self, store):
        with capture_logs() as logs:
            match = await find_source_swap(store, SOURCE_TX, BRIDGE_ASSET)

        assert match is None
        assert logs[-1]["event"] == "No source swap with bridge asset found"

    @pytest.mark.asyncio
    async def test_first_swap_without_bridge_asset(self, store):
        await store.set(make_swap(TOKEN_A, 1, TOKEN_C, 2, log_index=0))
        await store.set(make_swap(TOKEN_C, 2, BRIDGE_ASSET, 3, log_index=1))

        with capture_logs() as logs:
            match = await find_source_swap(store, SOURCE_TX, BRIDGE_ASSET)

        assert match is None
        assert logs[-1]["event"] == "Source swap does not involve bridge asset"

    @pytest.mark.asyncio
    async def test_first_in_log_order(self, store):
        await store.set(make_swap(TOKEN_C, 7, BRIDGE_ASSET, 8, log_index=5))
        await store.set(make_swap(TOKEN_A, 500, BRIDGE_ASSET, 1000, log_index=2))

        match = await find_source_swap(store, SOURCE_TX, BRIDGE_ASSET)

        assert match.token == TOKEN_A

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive(self, store):
        await store.set(make_swap(TOKEN_A, 500, BRIDGE_ASSET, 1000))

        match = await find_source_swap(store, SOURCE_TX, "0x" + BRIDGE_ASSET[2:].upper())

        assert match is not None
        assert match.token == TOKEN_A


@pytest.mark.asyncio
async def test_load_destination_swaps_includes_empty_transactions(store):
    swap = destination_swap(BRIDGE_ASSET, 1000, TOKEN_B, 2000)
    await store.set(swap)

    result = await load_destination_swaps(store, {DESTINATION_TX, OTHER_DESTINATION_TX})

    assert result == {DESTINATION_TX: [swap], OTHER_DESTINATION_TX: []}


class TestFindDestinationSwap:

    def test_bridge_asset_in(self):
        dispatches = [make_dispatch(MESSAGE_ID)]
        processes = {MESSAGE_ID: make_process(MESSAGE_ID)}
        swap = destination_swap(BRIDGE_ASSET, 1000, TOKEN_B, 2000)

        match = find_destination_swap(dispatches, processes, {DESTINATION_TX: [swap]}, BRIDGE_ASSET)

        assert match.swap == swap
        assert match.message_id == MESSAGE_ID
        assert (match.token, match.amount) == (TOKEN_B, 2000)

    def test_bridge_asset_out_reports_token_in(self):
        dispatches = [make_dispatch(MESSAGE_ID)]
        processes = {MESSAGE_ID: make_process(MESSAGE_ID)}
        swap = destination_swap(TOKEN_B, 2000, BRIDGE_ASSET, 1000)

        match = find_destination_swap(dispatches, processes, {DESTINATION_TX: [swap]}, BRIDGE_ASSET)

        assert (match.token, match.amount) == (TOKEN_B, 2000)

    def test_skips_swaps_without_bridge_asset(self):
        dispatches = [make_dispatch(MESSAGE_ID)]
        processes = {MESSAGE_ID: make_process(MESSAGE_ID)}
        unrelated = destination_swap(TOKEN_C, 1, TOKEN_A, 2, log_index=0)
        wanted = destination_swap(BRIDGE_ASSET, 1000, TOKEN_B, 2000, log_index=1)

        with capture_logs() as logs:
            match = find_destination_swap(dispatches, processes, {DESTINATION_TX: [unrelated, wanted]}, BRIDGE_ASSET)

        assert match.swap == wanted
        assert [log["event"] for log in logs] == ["Destination swap does not involve bridge asset"]

    def test_only_one_of_three_dispatches_leads_to_a_swap(self):
        dispatches = [
            make_dispatch(MESSAGE_ID, log_index=0),
            make_dispatch(OTHER_MESSAGE_ID, log_index=1),
            make_dispatch(THIRD_MESSAGE_ID, log_index=2),
        ]
        processes = {
            MESSAGE_ID: make_process(MESSAGE_ID, tx_hash=DESTINATION_TX),
            THIRD_MESSAGE_ID: make_process(THIRD_MESSAGE_ID, tx_hash=OTHER_DESTINATION_TX),
        }
        swap = destination_swap(BRIDGE_ASSET, 1000, TOKEN_B, 2000, tx_hash=OTHER_DESTINATION_TX)
        tx_hash_to_swaps = {DESTINATION_TX: [], OTHER_DESTINATION_TX: [swap]}

        with capture_logs() as logs:
            match = find_destination_swap(dispatches, processes, tx_hash_to_swaps, BRIDGE_ASSET)

        assert match.message_id == THIRD_MESSAGE_ID
        assert match.swap == swap
        assert [log["event"] for log in logs] == [
            "No destination swaps found for transaction",
            "No process event found for message",
        ]

    def test_first_dispatch_wins(self):
        dispatches = [make_dispatch(MESSAGE_ID, log_index=0), make_dispatch(OTHER_MESSAGE_ID, log_index=1)]
        processes = {
            MESSAGE_ID: make_process(MESSAGE_ID, tx_hash=DESTINATION_TX),
            OTHER_MESSAGE_ID: make_process(OTHER_MESSAGE_ID, tx_hash=OTHER_DESTINATION_TX),
        }
        tx_hash_to_swaps = {
            DESTINATION_TX: [destination_swap(BRIDGE_ASSET, 1000, TOKEN_B, 2000)],
            OTHER_DESTINATION_TX: [destination_swap(BRIDGE_ASSET, 1000, TOKEN_C, 3000, tx_hash=OTHER_DESTINATION_TX)],
        }

        match = find_destination_swap(dispatches, processes, tx_hash_to_swaps, BRIDGE_ASSET)

        assert match.message_id == MESSAGE_ID
        assert match.token == TOKEN_B

    def test_no_candidates(self):
        with capture_logs() as logs:
            match = find_destination_swap([make_dispatch(MESSAGE_ID)], {}, {}, BRIDGE_ASSET)

        assert match is None
        assert logs[-1]["event"] == "No destination swap with bridge asset found for any candidate transaction"
        assert logs[-1]["log_level"] == "warning"

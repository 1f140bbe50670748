import logging

import orjson
import pytest

from depth_client.config import Config
from depth_client.datafeed.stream import DepthSubscriber
from depth_client.errors import TransportError
from depth_client.types import PriceLevel

from .conftest import make_payload


def test_url_lowercases_symbol():
    subscriber = DepthSubscriber(Config(api_ws="wss://x.test"), "LTCBTC", "10")
    assert subscriber.url == "wss://x.test/ws/ltcbtc@depth10@100ms"


def test_insecure_config_disables_certificate_checks():
    assert DepthSubscriber(Config(insecure_skip_verify=True), "LTCBTC", "10")._ssl is False
    assert DepthSubscriber(Config(), "LTCBTC", "10")._ssl is True


async def test_connects_to_depth_stream(exchange, config):
    exchange.ws_messages = [orjson.dumps(make_payload(5)).decode()]

    async with DepthSubscriber(config, "BNBUSDT", "5") as subscriber:
        assert subscriber.connected
        snapshots = [s async for s in subscriber.snapshots()]

    assert exchange.ws_paths == ["/ws/bnbusdt@depth5@100ms"]
    assert [s.last_update_id for s in snapshots] == [5]


async def test_yields_one_snapshot_per_message(exchange, config):
    exchange.ws_messages = [
        '{"lastUpdateId":1,"bids":[["0.1","2.0"]],"asks":[["0.2","3.0"]]}',
        orjson.dumps(make_payload(2, levels=3)).decode(),
        orjson.dumps(make_payload(3, levels=2)).decode(),
    ]

    async with DepthSubscriber(config, "LTCBTC", "20") as subscriber:
        snapshots = [s async for s in subscriber.snapshots()]

    assert [s.last_update_id for s in snapshots] == [1, 2, 3]
    assert snapshots[0].bids == (PriceLevel("0.1", "2.0"),)
    assert snapshots[0].asks == (PriceLevel("0.2", "3.0"),)
    assert len(snapshots[1].asks) == 3


async def test_malformed_message_is_skipped(exchange, config, caplog):
    exchange.ws_messages = [
        orjson.dumps(make_payload(1)).decode(),
        "{not json",
        '{"result":null,"id":1}',
        orjson.dumps(make_payload(2)).decode(),
    ]

    with caplog.at_level(logging.WARNING, logger="depth_client"):
        async with DepthSubscriber(config, "LTCBTC", "10") as subscriber:
            snapshots = [s async for s in subscriber.snapshots()]

    assert [s.last_update_id for s in snapshots] == [1, 2]
    skipped = [r for r in caplog.records if "skipping undecodable message" in r.getMessage()]
    assert len(skipped) == 2


async def test_read_loop_calls_handler(exchange, config):
    exchange.ws_messages = [orjson.dumps(make_payload(i)).decode() for i in range(1, 4)]
    received = []

    async with DepthSubscriber(config, "LTCBTC", "10") as subscriber:
        await subscriber.read_loop(received.append)

    assert [s.last_update_id for s in received] == [1, 2, 3]


async def test_snapshots_not_restartable(exchange, config):
    async with DepthSubscriber(config, "LTCBTC", "10") as subscriber:
        assert [s async for s in subscriber.snapshots()] == []
        with pytest.raises(RuntimeError, match="already consumed"):
            async for _ in subscriber.snapshots():
                pass


async def test_snapshots_require_connection():
    subscriber = DepthSubscriber(Config(), "LTCBTC", "10")
    with pytest.raises(RuntimeError, match="not connected"):
        async for _ in subscriber.snapshots():
            pass


async def test_close_sends_normal_closure(exchange, config):
    exchange.ws_close_after_send = False

    async with DepthSubscriber(config, "LTCBTC", "10") as subscriber:
        await subscriber.close()
        assert not subscriber.connected
        # Second close is a no-op
        await subscriber.close()

    assert exchange.ws_client_close_codes == [1000]


async def test_connect_failure(exchange):
    base = exchange.ws_base
    await exchange.server.close()

    with pytest.raises(TransportError, match="connect"):
        async with DepthSubscriber(Config(api_ws=base), "LTCBTC", "10"):
            pass


async def test_handshake_rejected(exchange):
    # Unknown path: the server answers 404 instead of upgrading
    subscriber = DepthSubscriber(Config(api_ws=exchange.ws_base + "/missing"), "LTCBTC", "10")
    with pytest.raises(TransportError):
        await subscriber.connect()

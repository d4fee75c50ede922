from decimal import Decimal

import httpx
import pytest

from quote_clients.coingecko import CoinGeckoDataService
from quote_engine.errors import MarketDataError, UnsupportedChainError

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
FROM_TOKEN = "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2"
TO_TOKEN = "0x0bc529c00c6401aef6d220be8c6ea1667f6ad93e"

TOKEN_LIST = {
    "name": "CoinGecko",
    "tokens": [
        {"chainId": 1, "address": "0x9F8F72AA9304C8B593D555F12EF6589CC3A579A2", "symbol": "MKR", "decimals": 18},
        {"chainId": 1, "address": TO_TOKEN, "symbol": "YFI", "decimals": 18},
    ],
}


def build_service(handler):
    return CoinGeckoDataService(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_usd_prices():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                WETH: {"usd": 2493.12},
                FROM_TOKEN: {"usd": 3194.41},
                TO_TOKEN: {"usd": 39087},
            },
        )

    service = build_service(handler)
    prices = await service.fetch_usd_prices(1, [WETH, FROM_TOKEN.upper().replace("0X", "0x"), TO_TOKEN])

    assert prices == {
        WETH: Decimal("2493.12"),
        FROM_TOKEN: Decimal("3194.41"),
        TO_TOKEN: Decimal("39087"),
    }
    request = requests[0]
    assert request.url.path == "/api/v3/simple/token_price/ethereum"
    assert request.url.params["contract_addresses"] == f"{WETH},{FROM_TOKEN},{TO_TOKEN}"
    assert request.url.params["vs_currencies"] == "usd"
    await service.close()


@pytest.mark.asyncio
async def test_fetch_usd_prices_uses_chain_platform():
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={})

    service = build_service(handler)
    await service.fetch_usd_prices(10, [WETH])
    await service.fetch_usd_prices(137, [WETH])

    assert paths == [
        "/api/v3/simple/token_price/optimistic-ethereum",
        "/api/v3/simple/token_price/polygon-pos",
    ]
    await service.close()


@pytest.mark.asyncio
async def test_missing_prices_default_to_zero():
    service = build_service(lambda request: httpx.Response(200, json={WETH: {"usd": 2000}}))

    prices = await service.fetch_usd_prices(1, [WETH, TO_TOKEN])

    assert prices == {WETH: Decimal("2000"), TO_TOKEN: Decimal(0)}
    await service.close()


@pytest.mark.asyncio
async def test_failed_price_request_falls_back_to_zero():
    service = build_service(lambda request: httpx.Response(429, json={"error": "rate limited"}))

    prices = await service.fetch_usd_prices(1, [WETH, TO_TOKEN])

    assert prices == {WETH: Decimal(0), TO_TOKEN: Decimal(0)}
    await service.close()


@pytest.mark.asyncio
async def test_empty_address_list_skips_request():
    def handler(request):
        raise AssertionError("no request expected")

    service = build_service(handler)

    assert await service.fetch_usd_prices(1, []) == {}


@pytest.mark.asyncio
async def test_unsupported_chain():
    service = build_service(lambda request: httpx.Response(200, json={}))

    with pytest.raises(UnsupportedChainError):
        await service.fetch_usd_prices(1337, [WETH])


@pytest.mark.asyncio
async def test_token_list_is_cached_and_indexed():
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json=TOKEN_LIST)

    service = build_service(handler)

    tokens = await service.fetch_token_list(1)
    token_map = await service.fetch_token_map(1)
    await service.fetch_token_list(1)

    assert len(tokens) == 2
    assert urls == ["https://tokens.coingecko.com/uniswap/all.json"]
    assert token_map[FROM_TOKEN]["symbol"] == "MKR"
    assert token_map[TO_TOKEN]["decimals"] == 18
    await service.close()


@pytest.mark.asyncio
async def test_token_list_failure_raises():
    service = build_service(lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(MarketDataError):
        await service.fetch_token_list(137)
    await service.close()


@pytest.mark.asyncio
async def test_token_list_without_tokens_key_raises():
    service = build_service(lambda request: httpx.Response(200, json={"name": "empty"}))

    with pytest.raises(MarketDataError):
        await service.fetch_token_list(10)
    await service.close()

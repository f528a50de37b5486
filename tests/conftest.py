"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture
def api_key():
    """Test API key."""
    return "test_api_key_123456"


@pytest.fixture
def api_secret():
    """Test API secret."""
    return "test_api_secret_789012"


@pytest.fixture
def currency_record():
    """Sample currency record from trade/api/currencies."""
    return {
        "id": 11,
        "symbol": "btc",
        "title": "Bitcoin",
        "logoURL": "https://bit.team/static/btc.png",
        "isDiscount": None,
        "address": "https://bitcoin.org/",
        "description": "Bitcoin currency",
        "decimals": 8,
        "blockChain": "Bitcoin",
        "currentRate": None,
        "active": True,
        "timeStart": "2021-01-29T04:53:05.762Z",
        "txLimits": {
            "maxWithdraw": "1000",
            "minWithdraw": "0.0005",
            "withdrawCommissionFixed": "0.001",
            "withdrawCommissionPercentage": "NaN",
        },
        "type": "crypto",
    }


@pytest.fixture
def pair_record():
    """Sample pair record from trade/api/pairs and trade/api/pair/{name}."""
    return {
        "id": 2,
        "name": "eth_usdt",
        "baseAssetId": 2,
        "quoteAssetId": 3,
        "fullName": "ETH USDT",
        "description": "ETH   USDT",
        "lastBuy": "1976.715012",
        "lastSell": "1971.995006",
        "lastPrice": "1976.715012",
        "change24": "1.02",
        "volume24": "148.0",
        "active": True,
        "baseStep": 8,
        "quoteStep": 6,
        "status": 1,
        "settings": {
            "limit_usd": "0.1",
            "price_max": "10000000000000",
            "price_min": "0.000001",
            "price_tick": "1",
            "pricescale": 10000,
            "lot_size_max": "1000000000000000",
            "lot_size_min": "0.00001",
            "lot_size_tick": "1",
        },
        "updateId": "0-0",
        "timeStart": "2021-01-28T09:19:30.706Z",
        "makerFee": 200,
        "takerFee": 200,
        "quoteVolume24": "292435.2",
        "lowPrice24": "1933.97",
        "highPrice24": "1991.0",
        "baseAsset": {"id": 2, "symbol": "eth", "decimals": 18},
        "quoteAsset": {"id": 3, "symbol": "usdt", "decimals": 6},
        "orderBook": {
            "sell": [["1977.1", "0.5"], ["1978.0", "1.25"], ["1980.5", "3"]],
            "buy": [["1975.9", "0.8"], ["1975.0", "2"], ["1970.0", "4.1"]],
        },
    }


@pytest.fixture
def user_trade_record():
    """Sample trade from trade/api/ccxt/tradesOfUser."""
    return {
        "id": 34880724,
        "tradeId": "4368041",
        "makerOrderId": 106742914,
        "takerOrderId": 106761614,
        "pair": "del_usdt",
        "side": "buy",
        "quantity": "1500",
        "price": "0.0185",
        "isBuyerMaker": True,
        "baseDecimals": 18,
        "quoteDecimals": 6,
        "timestamp": 1684152064,
        "feeMaker": {"amount": "27750", "symbol": "usdt", "userId": 21639, "decimals": 6},
        "feeTaker": {"amount": "55500", "symbol": "usdt", "userId": 21640, "decimals": 6},
        "createdAt": "2023-05-15T12:01:04.000Z",
    }


@pytest.fixture
def order_record():
    """Sample order from trade/api/ccxt/order/{id}."""
    return {
        "id": 106494347,
        "orderCid": None,
        "pair": "eth_usdt",
        "pairId": 2,
        "quantity": "0.00448",
        "price": "1700",
        "executedPrice": "0",
        "fee": None,
        "executed": "0",
        "expires": None,
        "baseDecimals": 18,
        "quoteDecimals": 6,
        "timestamp": 1683568738,
        "status": "accepted",
        "side": "buy",
        "type": "limit",
        "createdAt": "2023-05-08T17:58:58.689Z",
    }


@pytest.fixture
def transaction_record():
    """Sample transaction from trade/api/transactionsOfUser."""
    return {
        "id": 1329229,
        "orderId": "2f3df6f6-2d3f-4f3f-9b6b-b8b0b6c6a0d1",
        "transactionCoreId": "0x4f1b5c3e2d7a8f9e0c1b2a3d4e5f60718293a4b5c6d7e8f9a0b1c2d3e4f5a6b7",
        "userId": 21639,
        "recipient": "0x7a16fF8270133F063aAb6C9977183D9e72835428",
        "sender": "0x3F5CE5FBFe3E9af3971dD833D26bA9b5C936f0bE",
        "amount": "250.5",
        "reason": None,
        "timestamp": 1683205200,
        "status": 1,
        "statusDescription": "Success",
        "type": "deposit",
        "message": None,
        "blockChain": "Ethereum",
        "currency": {"symbol": "usdt", "decimals": 6},
    }


@pytest.fixture
def envelope():
    """Wrap a payload in the provider response envelope."""

    def _wrap(result):
        return {"ok": True, "result": result}

    return _wrap

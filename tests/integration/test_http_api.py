"""Integration tests for the HTTP API over a mainnet-like pool snapshot."""

import json
from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from sor.api.main import app
from tests.helpers import ADAI, BAL, DAI, USDC, USDT, WETH, XSGD

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures" / "snapshots"

BB_A_DAI = "0x804cdb9116a10bb78768d3252355a1b18067bf8f"


@pytest.fixture(scope="module")
def pools() -> list[dict]:
    """Weighted, stable, linear and FX pools as the persistence layer sends them."""
    with open(FIXTURES_DIR / "mainnet_pools.json") as f:
        return json.load(f)["pools"]


@pytest.fixture
def client() -> Iterator[TestClient]:
    yield TestClient(app)
    app.dependency_overrides.clear()


def post_swap(client, pools, token_in, token_out, amount, kind="GIVEN_IN", **options) -> dict:
    response = client.post(
        "/sor/swaps",
        json={
            "tokenIn": token_in,
            "tokenOut": token_out,
            "swapKind": kind,
            "swapAmount": amount,
            "pools": pools,
            "options": options,
        },
    )
    assert response.status_code == 200
    return response.json()


class TestSwaps:
    def test_weighted_then_stable(self, client, pools) -> None:
        data = post_swap(client, pools, WETH, USDC, "10")

        assert 19_500 < Decimal(data["returnAmount"]) < 20_000
        assert int(data["returnAmountScaled"]) == int(Decimal(data["returnAmount"]) * 10**6)
        assert all(route["path"][0] == WETH for route in data["routes"])
        assert all(route["path"][-1] == USDC for route in data["routes"])

    def test_three_hops(self, client, pools) -> None:
        data = post_swap(client, pools, BAL, USDT, "10000")

        assert [route["path"] for route in data["routes"]] == [[BAL, WETH, DAI, USDT]]
        assert len(data["swaps"]) == 3
        assert data["swaps"][0]["amount"] == str(10_000 * 10**18)
        assert [s["amount"] for s in data["swaps"][1:]] == ["0", "0"]
        assert Decimal(data["returnAmount"]) > 40_000

    def test_three_hops_refused_with_max_hops_two(self, client, pools) -> None:
        data = post_swap(client, pools, BAL, USDT, "10000", maxHops=2)
        assert data["returnAmount"] == "0"
        assert data["routes"] == []

    def test_fx_then_stable(self, client, pools) -> None:
        data = post_swap(client, pools, XSGD, DAI, "10000")

        # 0.74 USD per XSGD, less the FX epsilon fee and the stable fee
        assert 7_380 < Decimal(data["returnAmount"]) < 7_400
        assert Decimal(data["priceImpact"]) < Decimal("0.01")

    def test_linear_given_out(self, client, pools) -> None:
        data = post_swap(client, pools, DAI, ADAI, "1000", kind="GIVEN_OUT")

        # Inside the target band: no fee, 1.08 DAI per aDAI
        assert abs(Decimal(data["returnAmount"]) - 1_080) < Decimal("1e-12")
        assert data["tokenOutAmount"] == "1000"
        assert data["routes"][0]["hops"][0]["poolId"].startswith(BB_A_DAI)

    def test_prices_are_consistent(self, client, pools) -> None:
        data = post_swap(client, pools, WETH, DAI, "5")

        effective = Decimal(data["effectivePrice"])
        reversed_ = Decimal(data["effectivePriceReversed"])
        assert abs(effective * reversed_ - 1) < Decimal("1e-15")
        assert effective >= Decimal(data["marketSp"]) > 0
        assert effective == pytest.approx(
            Decimal(data["tokenInAmount"]) / Decimal(data["tokenOutAmount"])
        )

    def test_unknown_pool_type(self, client, pools) -> None:
        broken = json.loads(json.dumps(pools))
        broken[0]["type"] = "GYRO"
        response = client.post(
            "/sor/swaps",
            json={
                "tokenIn": WETH,
                "tokenOut": DAI,
                "swapKind": "GIVEN_IN",
                "swapAmount": "1",
                "pools": broken,
            },
        )
        assert response.status_code == 422


class TestBatchSwaps:
    def test_two_tokens_into_dai(self, client, pools) -> None:
        response = client.post(
            "/sor/batch-swaps",
            json={
                "tokensIn": [{"address": BAL, "amount": "1000"}, {"address": WETH, "amount": "1"}],
                "tokenOut": DAI,
                "pools": pools,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["assets"][:2] == [BAL, DAI]
        assert WETH in data["assets"]
        assert Decimal(data["tokenOutAmount"]) > 2_000
        for step in data["swaps"]:
            assert step["assetInIndex"] < len(data["assets"])
            assert step["assetOutIndex"] < len(data["assets"])


class TestTokenPairs:
    def test_all_pools(self, client, pools) -> None:
        response = client.post("/pools/token-pairs", json={"pools": pools})

        assert response.status_code == 200
        counts = {pool_id[:42]: len(pairs) for pool_id, pairs in response.json()["pools"].items()}
        assert counts == {
            "0x5c6ee304399dbdb9c8ef030ab642b10820db8f56": 1,
            "0x0b09dea16768f0799065c475be02919503cb2a35": 1,
            "0x06df3b2bbb68adc8b0e302443692037ed9f91b42": 3,
            BB_A_DAI: 1,
            "0x55bec22f8f6c69137ceaf284d9b441db1b9bfedc": 1,
        }

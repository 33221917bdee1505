"""Tests for the FastAPI endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import FakeQuoteFetcher, FakeRelay, FakeRpc
from swapbundler.api.app import create_app
from swapbundler.errors import UpstreamQuoteError
from swapbundler.relay.base import RelayStatus, RelayStatusKind


@pytest.fixture
def relay():
    return FakeRelay()


@pytest.fixture
def rpc():
    return FakeRpc()


@pytest.fixture
def quote_fetcher(unsigned_swap):
    return FakeQuoteFetcher({
        "USDC": unsigned_swap(),
        "JUP": unsigned_swap(),
        "BONK": unsigned_swap(),
        "FAIL": UpstreamQuoteError("Quote service returned HTTP 500", details="upstream down"),
    })


@pytest.fixture
def test_app(settings, quote_fetcher, relay, rpc):
    """Create test application with fake collaborators."""
    return create_app(settings, quote_fetcher=quote_fetcher, relay=relay, rpc=rpc)


@pytest.fixture
async def client(test_app):
    """Create async test client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "swapbundler"

    @pytest.mark.asyncio
    async def test_detailed_health_redacts_secrets(self, client):
        response = await client.get("/api/v1/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["relay"] == "Fake"
        assert data["quoteFetcher"] == "Fake"
        assert data["submissionMode"] == "parallel"
        config = data["config"]
        assert config["environment"] == "test"
        assert config["quote"]["api_key"] == "***"
        assert config["relay"]["confirmation_grace_ms"] == 5_000


    @pytest.mark.asyncio
    async def test_docs_hidden_in_production(self, settings, quote_fetcher, relay, rpc):
        settings.environment = "production"
        app = create_app(settings, quote_fetcher=quote_fetcher, relay=relay, rpc=rpc)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/docs")

        assert response.status_code == 404


class TestBuildEndpoint:
    """Tests for POST /api/v1/bundles/build."""

    @pytest.mark.asyncio
    async def test_build(self, client, signer_address):
        response = await client.post("/api/v1/bundles/build", json={
            "branches": [["USDC"], ["JUP", "BONK"]],
            "inputAsset": "SOL",
            "amount": "1000",
            "signerAddress": signer_address,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["totalSwaps"] == 3
        assert data["totalBundles"] == 2
        assert [len(b) for b in data["bundles"]] == [2, 3]

    @pytest.mark.asyncio
    async def test_legacy_field_names(self, client, signer_address, quote_fetcher):
        response = await client.post("/api/v1/bundles/build", json={
            "branches": [["USDC"]],
            "inputMint": "SOL",
            "amount": 1000,
            "userPublicKey": signer_address,
            "slippageBps": 30,
            "jitoTip": 5000,
        })

        assert response.status_code == 200
        assert quote_fetcher.calls == [("SOL", "USDC", 1000, signer_address, 30)]

    @pytest.mark.asyncio
    async def test_invalid_branches(self, client, signer_address, quote_fetcher):
        response = await client.post("/api/v1/bundles/build", json={
            "branches": [["USDC"], []],
            "inputAsset": "SOL",
            "amount": 1000,
            "signerAddress": signer_address,
        })

        assert response.status_code == 400
        assert response.json() == {"error": "Branch 2 is empty or invalid", "branchIndex": 2}
        assert quote_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_schema_violation_is_400(self, client, signer_address):
        response = await client.post("/api/v1/bundles/build", json={
            "branches": [["USDC"]],
            "inputAsset": "SOL",
            "amount": 1000,
            "signerAddress": signer_address,
            "slippageToleranceBps": -1,
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    @pytest.mark.asyncio
    async def test_upstream_failure(self, client, signer_address):
        response = await client.post("/api/v1/bundles/build", json={
            "branches": [["USDC"], ["JUP", "FAIL"]],
            "inputAsset": "SOL",
            "amount": 1000,
            "signerAddress": signer_address,
        })

        assert response.status_code == 400
        data = response.json()
        assert data["branchIndex"] == 2
        assert data["swapIndex"] == 2
        assert data["outputAsset"] == "FAIL"
        assert data["details"] == "upstream down"


class TestSubmitEndpoint:
    """Tests for POST /api/v1/bundles/submit."""

    @pytest.mark.asyncio
    async def test_all_confirmed(self, client, signed_swap, signer_address):
        bundles = [[signed_swap(), signed_swap()], [signed_swap()]]

        response = await client.post("/api/v1/bundles/submit", json={
            "bundles": bundles, "signerAddress": signer_address,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["totalBundles"] == 2
        assert [r["bundleIndex"] for r in data["results"]] == [1, 2]
        assert data["timeoutBundles"] == []

    @pytest.mark.asyncio
    async def test_timeout_is_408(self, client, relay, signed_swap, signer_address):
        bundles = [[signed_swap()], [signed_swap()], [signed_swap()]]
        relay.statuses[bundles[1][0]] = RelayStatus(kind=RelayStatusKind.UNKNOWN)

        response = await client.post("/api/v1/bundles/submit", json={
            "bundles": bundles, "signerAddress": signer_address,
        })

        assert response.status_code == 408
        data = response.json()
        assert data["success"] is False
        assert data["timeoutBundles"] == [2]
        assert [b["bundleIndex"] for b in data["successfulBundles"]] == [1, 3]
        assert data["timeout"] == "1000ms"

    @pytest.mark.asyncio
    async def test_execution_failure_includes_simulation(self, client, relay, rpc, signed_swap, signer_address):
        bundles = [[signed_swap()]]
        relay.statuses[bundles[0][0]] = RelayStatus(
            kind=RelayStatusKind.FAILED, error={"InstructionError": [0, {"Custom": 1}]}
        )

        response = await client.post("/api/v1/bundles/submit", json={
            "bundles": bundles, "signerAddress": signer_address,
        })

        assert response.status_code == 400
        failed = response.json()["failedBundles"][0]
        assert failed["failureKind"] == "execution"
        assert failed["simulation"][0]["unitsConsumed"] == 1234
        assert rpc.simulated == bundles[0]

    @pytest.mark.asyncio
    async def test_rejected_by_relay_is_500(self, client, relay, signed_swap, signer_address):
        bundles = [[signed_swap()]]
        relay.statuses[bundles[0][0]] = "reject"

        response = await client.post("/api/v1/bundles/submit", json={
            "bundles": bundles, "signerAddress": signer_address,
        })

        assert response.status_code == 500
        assert response.json()["failedBundles"][0]["failureKind"] == "submission"

    @pytest.mark.asyncio
    async def test_sequential_mode(self, client, relay, signed_swap, signer_address):
        bundles = [[signed_swap()], [signed_swap()]]
        relay.statuses[bundles[0][0]] = RelayStatus(kind=RelayStatusKind.FAILED, error="boom")

        response = await client.post("/api/v1/bundles/submit", json={
            "bundles": bundles, "signerAddress": signer_address, "mode": "sequential",
        })

        assert response.status_code == 400
        assert response.json()["skippedBundles"] == [2]
        assert len(relay.sent) == 1

    @pytest.mark.asyncio
    async def test_unsigned_transaction_rejected_before_relay(
        self, client, relay, signed_swap, unsigned_swap, signer_address
    ):
        bundles = [[signed_swap()], [signed_swap(), unsigned_swap()]]

        response = await client.post("/api/v1/bundles/submit", json={
            "bundles": bundles, "signerAddress": signer_address,
        })

        assert response.status_code == 400
        data = response.json()
        assert data["bundleIndex"] == 2
        assert data["transactionIndex"] == 1
        assert relay.sent == []

    @pytest.mark.asyncio
    async def test_missing_bundles(self, client, signer_address):
        response = await client.post("/api/v1/bundles/submit", json={"signerAddress": signer_address})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing or invalid bundles array"


class TestSubmitOneEndpoint:
    """Tests for POST /api/v1/bundles/submit-one."""

    @pytest.mark.asyncio
    async def test_submit_one(self, client, signed_swap, signer_address):
        response = await client.post("/api/v1/bundles/submit-one", json={
            "transactions": [signed_swap(), signed_swap()], "userAddress": signer_address,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["bundleIndex"] == 1
        assert data["bundleId"].startswith("id-")
        assert len(data["signatures"]) == 2

    @pytest.mark.asyncio
    async def test_missing_transactions(self, client, signer_address):
        response = await client.post("/api/v1/bundles/submit-one", json={"signerAddress": signer_address})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing or invalid transactions array"


class TestQuoteEndpoint:
    """Tests for POST /api/v1/quotes/order."""

    @pytest.mark.asyncio
    async def test_order(self, client, signer_address):
        response = await client.post("/api/v1/quotes/order", json={
            "inputMint": "SOL", "outputMint": "USDC", "amount": 1000, "taker": signer_address,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["requestId"] == "req-USDC"
        assert data["inAmount"] == "1000"
        assert data["outAmount"] == "2000"
        assert data["transaction"]

    @pytest.mark.asyncio
    async def test_invalid_taker(self, client):
        response = await client.post("/api/v1/quotes/order", json={
            "inputMint": "SOL", "outputMint": "USDC", "amount": 1000, "taker": "nope",
        })

        assert response.status_code == 400


class TestDecodeEndpoint:
    """Tests for POST /api/v1/transactions/decode."""

    @pytest.mark.asyncio
    async def test_decode(self, client, signed_swap, signer_address):
        response = await client.post("/api/v1/transactions/decode", json={"transaction": signed_swap()})

        assert response.status_code == 200
        data = response.json()
        assert data["feePayer"] == signer_address
        assert data["numInstructions"] == 1
        assert len(data["signatures"]) == 1

    @pytest.mark.asyncio
    async def test_invalid_transaction(self, client):
        response = await client.post("/api/v1/transactions/decode", json={"transaction": "bm90IGEgdHg="})

        assert response.status_code == 400
        assert response.json()["error"] == "Transaction is not valid"


class TestUnhandledErrors:
    """Unexpected exceptions become a generic 500 body."""

    @pytest.mark.asyncio
    async def test_internal_error(self, settings, relay, rpc, signer_address):
        """Debug settings still produce the JSON error body instead of a traceback page."""
        assert settings.debug is True
        app = create_app(
            settings,
            quote_fetcher=FakeQuoteFetcher({"USDC": RuntimeError("kaboom")}),
            relay=relay,
            rpc=rpc,
        )
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.post("/api/v1/quotes/order", json={
                "inputMint": "SOL", "outputMint": "USDC", "amount": 1000, "taker": signer_address,
            })

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "details": "kaboom"}


class TestAppWiring:
    """Settings flow into the services built by the app factory."""

    def test_confirmation_grace_from_settings(self, settings, quote_fetcher, relay, rpc):
        settings.confirmation_grace_ms = 250
        app = create_app(settings, quote_fetcher=quote_fetcher, relay=relay, rpc=rpc)

        submitter = app.state.bundle_submitter
        assert submitter.grace == 0.25
        assert submitter.confirmation_timeout == settings.confirmation_timeout_seconds

    def test_app_never_runs_in_starlette_debug(self, settings, quote_fetcher, relay, rpc):
        app = create_app(settings, quote_fetcher=quote_fetcher, relay=relay, rpc=rpc)

        assert settings.debug is True
        assert app.debug is False

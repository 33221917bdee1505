"""Pytest configuration and fixtures."""

import asyncio
import base64
import os
from typing import Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["QUOTE_API_KEY"] = "test-key"
os.environ["RELAY_AUTH_TOKEN"] = ""

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from swapbundler.config import Settings
from swapbundler.errors import RpcError, SubmissionError
from swapbundler.relay.base import BundleRelay, RelayStatus, RelayStatusKind
from swapbundler.routing.base import Quote, QuoteFetcher
from swapbundler.solana.transactions import unsigned_transaction

SWAP_PROGRAM = Pubkey.from_string("JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4")

TIP_ACCOUNTS = [
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
]


def encode(tx: VersionedTransaction) -> str:
    return base64.b64encode(bytes(tx)).decode("ascii")


def swap_message(
    payer: Pubkey,
    blockhash: Optional[Hash] = None,
    lookup: Optional[AddressLookupTableAccount] = None,
) -> MessageV0:
    """A swap-like v0 message; with ``lookup`` two of its accounts come from the table."""
    accounts = [
        AccountMeta(payer, True, True),
        AccountMeta(Pubkey.new_unique(), False, True),
        AccountMeta(Pubkey.new_unique(), False, False),
    ]
    if lookup is not None:
        accounts.append(AccountMeta(lookup.addresses[0], False, True))
        accounts.append(AccountMeta(lookup.addresses[1], False, False))
    instruction = Instruction(SWAP_PROGRAM, bytes([0xE5, 0x17, 0xCB, 0x97]), accounts)
    return MessageV0.try_compile(
        payer,
        [instruction],
        [lookup] if lookup is not None else [],
        blockhash or Hash.new_unique(),
    )


def make_lookup_table() -> AddressLookupTableAccount:
    return AddressLookupTableAccount(
        Pubkey.new_unique(), [Pubkey.new_unique() for _ in range(3)]
    )


@pytest.fixture
def keypair() -> Keypair:
    return Keypair()


@pytest.fixture
def signer_address(keypair) -> str:
    return str(keypair.pubkey())


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        quote_api_key="test-key",
        tip_accounts=list(TIP_ACCOUNTS),
        tip_selection="round_robin",
        confirmation_timeout_ms=1_000,
        confirmation_poll_interval_ms=10,
        request_timeout_ms=1_000,
    )


@pytest.fixture
def unsigned_swap(keypair):
    """Factory for unsigned base64 swap transactions paid by ``keypair``."""

    def factory(
        blockhash: Optional[Hash] = None,
        lookup: Optional[AddressLookupTableAccount] = None,
        payer: Optional[Pubkey] = None,
    ) -> str:
        message = swap_message(payer or keypair.pubkey(), blockhash, lookup)
        return encode(unsigned_transaction(message))

    return factory


@pytest.fixture
def signed_swap(keypair):
    """Factory for signed base64 swap transactions."""

    def factory(signer: Optional[Keypair] = None, blockhash: Optional[Hash] = None) -> str:
        signer = signer or keypair
        message = swap_message(signer.pubkey(), blockhash)
        return encode(VersionedTransaction(message, [signer]))

    return factory


class FakeQuoteFetcher(QuoteFetcher):
    """Returns a prepared transaction per output asset; exceptions are raised."""

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls = []

    @property
    def name(self) -> str:
        return "Fake"

    async def fetch_order(self, input_mint, output_mint, amount, taker, slippage_bps=None):
        self.calls.append((input_mint, output_mint, amount, taker, slippage_bps))
        response = self.responses[output_mint]
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = await response()
        return Quote(
            input_mint=input_mint,
            output_mint=output_mint,
            in_amount=amount,
            out_amount=amount * 2,
            transaction=response,
            request_id=f"req-{output_mint}",
        )


class FakeRpc:
    """Solana RPC stand-in with canned lookup tables and simulation results."""

    def __init__(self, tables: Optional[dict] = None, simulation: Optional[dict] = None):
        self.tables = tables or {}
        self.simulation = simulation if simulation is not None else {
            "err": None, "logs": ["Program log: ok"], "unitsConsumed": 1234,
        }
        self.table_calls = []
        self.simulated = []

    async def get_lookup_tables(self, table_keys):
        self.table_calls.append(list(table_keys))
        return {key: self.tables[key] for key in table_keys}

    async def simulate_transaction(self, transaction):
        self.simulated.append(transaction)
        if isinstance(self.simulation, BaseException):
            raise self.simulation
        return self.simulation


class FakeRelay(BundleRelay):
    """Relay stand-in.

    ``statuses`` maps the first transaction of a bundle to a RelayStatus,
    ``"reject"`` (submission fails), ``"no-id"`` (empty bundle id),
    ``"hang"`` (confirmation never returns), ``"crash"`` (send raises an
    unexpected error) or an exception instance (raised by confirmation).
    Unlisted bundles confirm. ``signatures`` may also be an exception to raise.
    """

    def __init__(self, statuses: Optional[dict] = None, signatures: Optional[list] = None):
        self.statuses = statuses or {}
        self.signatures = signatures
        self.sent = []
        self.signature_lookups = 0

    @property
    def name(self) -> str:
        return "Fake"

    async def send_bundle(self, transactions):
        self.sent.append(list(transactions))
        behaviour = self.statuses.get(transactions[0])
        if behaviour == "reject":
            raise SubmissionError("Relay rejected the bundle", details={"code": -32602})
        if behaviour == "no-id":
            raise SubmissionError("Jito did not return bundle_id", details=None)
        if behaviour == "crash":
            raise RuntimeError("relay exploded")
        return f"id-{transactions[0]}"

    async def confirm_bundle(self, bundle_id, timeout):
        behaviour = self.statuses.get(bundle_id[len("id-"):])
        if behaviour == "hang":
            await asyncio.sleep(60)
        if isinstance(behaviour, Exception):
            raise behaviour
        if isinstance(behaviour, RelayStatus):
            return behaviour
        return RelayStatus(kind=RelayStatusKind.LANDED, slot=100 + len(self.sent))

    async def get_bundle_signatures(self, bundle_id):
        self.signature_lookups += 1
        if self.signatures is None:
            raise RpcError("getBundleStatuses request failed")
        if isinstance(self.signatures, Exception):
            raise self.signatures
        return list(self.signatures)


@pytest.fixture
def fake_rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture
def fake_relay() -> FakeRelay:
    return FakeRelay()

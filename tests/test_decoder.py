"""Tests for the human-readable transaction decoder."""

import struct

import pytest
from solders.hash import Hash
from solders.pubkey import Pubkey

from conftest import make_lookup_table
from swapbundler.solana.decoder import (
    decode_compute_budget,
    describe_transaction,
    program_name,
    summarize_transaction,
)
from swapbundler.solana.transactions import (
    TransactionDecodeError,
    add_compute_budget,
    build_tip_transaction,
    decode_transaction,
    encode_transaction,
)


class TestComputeBudgetDecoding:
    """Tests for compute budget instruction layouts."""

    def test_request_heap_frame(self):
        data = bytes([1]) + struct.pack("<I", 256 * 1024)
        assert decode_compute_budget(data) == {"type": "RequestHeapFrame", "bytes": 262144}

    def test_loaded_accounts_data_size_limit(self):
        data = bytes([4]) + struct.pack("<I", 65536)
        assert decode_compute_budget(data) == {
            "type": "SetLoadedAccountsDataSizeLimit", "bytes": 65536,
        }

    def test_unknown_or_truncated(self):
        """Unknown discriminants and short payloads decode to None."""
        assert decode_compute_budget(bytes([0, 1, 2, 3, 4])) is None
        assert decode_compute_budget(bytes([3, 1])) is None
        assert decode_compute_budget(b"") is None


class TestDescribeTransaction:
    """Tests for describe_transaction."""

    def test_tip_transaction(self, signer_address):
        """A tip transfer shows the system program and the lamports."""
        tip_account = str(Pubkey.new_unique())
        blockhash = str(Hash.new_unique())
        blob = encode_transaction(
            build_tip_transaction(signer_address, tip_account, 5_000, blockhash)
        )

        description = describe_transaction(blob)

        assert description["feePayer"] == signer_address
        assert description["recentBlockhash"] == blockhash
        assert description["numInstructions"] == 1
        ix = description["instructions"][0]
        assert ix["programName"] == "System Program"
        assert ix["decoded"] == {"type": "Transfer", "lamports": 5_000}
        assert ix["accounts"][0] == {
            "index": 0, "pubkey": signer_address, "isSigner": True, "isWritable": True,
        }
        assert ix["accounts"][1]["pubkey"] == tip_account
        assert ix["accounts"][1]["isWritable"] is True

    def test_swap_with_compute_budget_and_lookup_table(self, unsigned_swap):
        """Compute budget instructions are decoded; table accounts have no pubkey."""
        lookup = make_lookup_table()
        tx = decode_transaction(unsigned_swap(lookup=lookup))
        rebuilt = add_compute_budget(
            tx, {str(lookup.key): list(lookup.addresses)}, 600_000, 25_000
        )

        description = describe_transaction(encode_transaction(rebuilt))

        assert [ix["decoded"] for ix in description["instructions"][:2]] == [
            {"type": "SetComputeUnitLimit", "units": 600_000},
            {"type": "SetComputeUnitPrice", "microLamports": 25_000},
        ]
        swap = description["instructions"][2]
        assert swap["programName"] == "Jupiter Aggregator v6"
        assert swap["dataHex"] == "e517cb97"
        loaded = [a for a in swap["accounts"] if a["pubkey"] is None]
        assert [a["isWritable"] for a in loaded] == [True, False]
        assert description["addressTableLookups"][0]["accountKey"] == str(lookup.key)

    def test_summary(self, unsigned_swap):
        """Summary names decoded instructions by type and others by program."""
        rebuilt = add_compute_budget(decode_transaction(unsigned_swap()), {}, 1, 2)
        assert summarize_transaction(encode_transaction(rebuilt)) == (
            "SetComputeUnitLimit, SetComputeUnitPrice, Jupiter Aggregator v6"
        )

    def test_invalid_transaction(self):
        with pytest.raises(TransactionDecodeError):
            describe_transaction("bm90IGEgdHJhbnNhY3Rpb24=")

    def test_unknown_program(self):
        assert program_name(str(Pubkey.new_unique())) == "Unknown Program"

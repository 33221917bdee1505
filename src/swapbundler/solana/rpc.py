"""Minimal async Solana JSON-RPC client.

Only the two calls the bundle lifecycle needs:
- getMultipleAccounts (jsonParsed) to resolve address lookup tables
- simulateTransaction to explain why a bundle failed
"""

import logging
from typing import Any, Optional

import httpx

from swapbundler.errors import LookupTableError, RpcError

logger = logging.getLogger(__name__)

# getMultipleAccounts accepts at most 100 keys per call
MAX_ACCOUNTS_PER_CALL = 100


class SolanaRpcClient:
    """Solana JSON-RPC over httpx."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        commitment: str = "confirmed",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.commitment = commitment
        self._transport = transport

    async def _call(self, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise RpcError(f"{method} request failed", details=str(e)) from e

        if response.status_code != 200:
            raise RpcError(
                f"{method} returned HTTP {response.status_code}",
                details=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(f"{method} response was not valid JSON", details=response.text) from e

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned an invalid response", details=response.text)
        if data.get("error"):
            raise RpcError(f"{method} returned an error", details=data["error"])
        return data.get("result")

    async def get_lookup_tables(self, table_keys: list[str]) -> dict[str, list[str]]:
        """Resolve address lookup tables to their address lists.

        Args:
            table_keys: Distinct lookup table account addresses

        Returns:
            Mapping of table address -> ordered list of addresses

        Raises:
            LookupTableError: If a table does not exist or is not a lookup table
        """
        tables: dict[str, list[str]] = {}
        for start in range(0, len(table_keys), MAX_ACCOUNTS_PER_CALL):
            chunk = table_keys[start:start + MAX_ACCOUNTS_PER_CALL]
            result = await self._call(
                "getMultipleAccounts",
                [chunk, {"encoding": "jsonParsed", "commitment": self.commitment}],
            )
            values = result.get("value") if isinstance(result, dict) else None
            if not isinstance(values, list) or len(values) != len(chunk):
                raise LookupTableError(
                    "getMultipleAccounts returned an unexpected number of accounts",
                    details={
                        "requested": len(chunk),
                        "returned": len(values) if isinstance(values, list) else None,
                    },
                )

            for key, account in zip(chunk, values):
                if not account or not isinstance(account, dict):
                    raise LookupTableError(f"Address lookup table not found: {key}")
                data = account.get("data")
                parsed = data.get("parsed") if isinstance(data, dict) else None
                if not parsed or parsed.get("type") != "lookupTable":
                    raise LookupTableError(f"Account is not an address lookup table: {key}")
                tables[key] = list(parsed.get("info", {}).get("addresses", []))

        logger.debug(f"Resolved {len(tables)} lookup table(s)")
        return tables

    async def simulate_transaction(self, transaction: str) -> dict:
        """Dry-run a base64 transaction against current state.

        Signature verification is disabled so partially signed or stale
        bundles can still be explained.

        Returns:
            The RPC ``value`` object: err, logs, unitsConsumed, ...
        """
        result = await self._call(
            "simulateTransaction",
            [
                transaction,
                {"encoding": "base64", "sigVerify": False, "commitment": self.commitment},
            ],
        )
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, dict):
            raise RpcError("simulateTransaction returned no simulation result", details=result)
        return value

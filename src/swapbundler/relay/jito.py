"""Jito block engine JSON-RPC client.

API docs: https://docs.jito.wtf/lowlatencytxnsend/
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from swapbundler.errors import RpcError, SubmissionError
from swapbundler.relay.base import BundleRelay, RelayStatus, RelayStatusKind, decode_bundle_status

logger = logging.getLogger(__name__)

BUNDLES_PATH = "/api/v1/bundles"
INFLIGHT_STATUS_PATH = "/api/v1/getInflightBundleStatuses"
BUNDLE_STATUS_PATH = "/api/v1/getBundleStatuses"


class JitoRelayClient(BundleRelay):
    """Jito block engine relay.

    Confirmation polls ``getInflightBundleStatuses`` until the bundle is
    Landed or Failed; on Landed the final ``getBundleStatuses`` entry is
    fetched for slot and confirmation detail.
    """

    def __init__(
        self,
        relay_url: str,
        auth_token: Optional[str] = None,
        poll_interval: float = 2.0,
        request_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Jito relay client.

        Args:
            relay_url: Block engine base URL
            auth_token: Optional UUID sent as ``x-jito-auth``
            poll_interval: Seconds between in-flight status polls
            request_timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.relay_url = relay_url.rstrip("/")
        self.auth_token = auth_token
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "Jito"

    def _get_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["x-jito-auth"] = self.auth_token
        return headers

    async def _rpc(self, path: str, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            async with httpx.AsyncClient(
                timeout=self.request_timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.relay_url}{path}", json=payload, headers=self._get_headers()
                )
        except httpx.HTTPError as e:
            raise RpcError(f"{method} request failed", details=str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code != 200:
            raise RpcError(
                f"{method} returned HTTP {response.status_code}",
                details=data if data is not None else response.text,
            )
        if not isinstance(data, dict):
            raise RpcError(f"{method} returned an invalid response", details=response.text)
        if data.get("error"):
            raise RpcError(f"{method} returned an error", details=data["error"])
        return data.get("result")

    async def send_bundle(self, transactions: list[str]) -> str:
        try:
            bundle_id = await self._rpc(
                BUNDLES_PATH, "sendBundle", [transactions, {"encoding": "base64"}]
            )
        except RpcError as e:
            raise SubmissionError("Relay rejected the bundle", details=e.details) from e

        if not bundle_id or not isinstance(bundle_id, str):
            raise SubmissionError("Jito did not return bundle_id", details=bundle_id)

        logger.info(f"Bundle submitted to {self.name}: {bundle_id} ({len(transactions)} txs)")
        return bundle_id

    async def _first_status(self, path: str, method: str, bundle_id: str) -> RelayStatus:
        result = await self._rpc(path, method, [[bundle_id]])
        if result is None:
            return decode_bundle_status(None)
        values = result.get("value") if isinstance(result, dict) else None
        if not isinstance(values, list):
            raise RpcError(f"{method} returned an unexpected result", details=result)
        return decode_bundle_status(values[0] if values else None)

    async def get_inflight_status(self, bundle_id: str) -> RelayStatus:
        return await self._first_status(INFLIGHT_STATUS_PATH, "getInflightBundleStatuses", bundle_id)

    async def get_bundle_status(self, bundle_id: str) -> RelayStatus:
        return await self._first_status(BUNDLE_STATUS_PATH, "getBundleStatuses", bundle_id)

    async def confirm_bundle(self, bundle_id: str, timeout: float) -> RelayStatus:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        status = RelayStatus(kind=RelayStatusKind.UNKNOWN)

        while True:
            try:
                status = await self.get_inflight_status(bundle_id)
            except RpcError as e:
                # Status endpoint hiccups are not terminal; keep polling until the window closes
                logger.warning(f"Status poll for {bundle_id} failed: {e}")
                status = RelayStatus(kind=RelayStatusKind.UNKNOWN, error=e.to_dict())

            if status.kind == RelayStatusKind.LANDED:
                try:
                    final = await self.get_bundle_status(bundle_id)
                except Exception as e:
                    # Landed already counts as confirmed; the final status only adds detail
                    logger.warning(f"Final status for {bundle_id} unavailable: {e}")
                else:
                    if final.is_terminal:
                        final.slot = final.slot or status.slot
                        return final
                return status

            if status.is_terminal:
                return status

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"Bundle {bundle_id} not terminal after {timeout:.0f}s")
                return status
            await asyncio.sleep(min(self.poll_interval, remaining))

    async def get_bundle_signatures(self, bundle_id: str) -> list[str]:
        status = await self.get_bundle_status(bundle_id)
        return status.transactions

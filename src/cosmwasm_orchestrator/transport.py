"""Asynchronous LCD (REST) transport for the live backend."""

import asyncio
import base64
import json
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .exceptions import BackendRejectionError, SerializationError, TransportError
from .types import CodeInfo, Coin, ContractInfo

logger = logging.getLogger(__name__)


def _b64_path(data: bytes) -> str:
    return quote(base64.b64encode(data).decode("ascii"), safe="")


class LcdTransport:
    """
    Cosmos SDK REST client.

    A fresh httpx.AsyncClient is opened inside every request, so a transport
    instance can be driven from any number of short-lived event loops.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        tx_timeout: float = 60.0,
        poll_interval: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: LCD endpoint, e.g., "http://localhost:1317"
            timeout: Per-request timeout in seconds
            tx_timeout: How long to wait for a broadcast tx to be included
            poll_interval: Delay between inclusion checks
            transport: Custom httpx transport (e.g., httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.tx_timeout = tx_timeout
        self.poll_interval = poll_interval
        self._transport = transport

    def __repr__(self) -> str:
        return f"LcdTransport({self.base_url!r})"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
        allow_missing: bool = False,
    ) -> Optional[Dict[str, Any]]:
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            async with self._client() as client:
                response = await client.request(method, path, params=params, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if allow_missing and response.status_code == 404:
            return None

        try:
            body = response.json()
        except ValueError as e:
            if response.is_success:
                raise SerializationError(f"{path}: response is not JSON: {e}", operation=path) from e
            raise TransportError(
                f"{method} {path} failed with status {response.status_code}: {response.text}"
            ) from e

        if response.is_success:
            return body

        # The node answered with a gRPC status: the request reached the chain and was rejected
        if isinstance(body, dict) and "code" in body and "message" in body:
            if allow_missing and "not found" in str(body["message"]).lower():
                return None
            raise BackendRejectionError(
                f"{path}: {body['message']}", raw_log=str(body["message"]), code=int(body["code"])
            )
        raise TransportError(f"{method} {path} failed with status {response.status_code}: {body}")

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", path, params=params)

    # Queries

    async def smart_contract_state(self, address: str, query_data: bytes) -> bytes:
        """Run a smart query; returns the contract's JSON answer as raw bytes."""
        body = await self.get(f"/cosmwasm/wasm/v1/contract/{address}/smart/{_b64_path(query_data)}")
        if "data" not in body:
            raise SerializationError(f"smart query on {address}: response has no 'data'", operation="query")
        return json.dumps(body["data"]).encode("utf-8")

    async def raw_contract_state(self, address: str, key: bytes) -> bytes:
        body = await self.get(f"/cosmwasm/wasm/v1/contract/{address}/raw/{_b64_path(key)}")
        return base64.b64decode(body.get("data") or "")

    async def balance(self, address: str, denom: str) -> Coin:
        body = await self.get(f"/cosmos/bank/v1beta1/balances/{address}/by_denom", {"denom": denom})
        return Coin.from_dict(body["balance"])

    async def all_balances(self, address: str) -> List[Coin]:
        body = await self.get(f"/cosmos/bank/v1beta1/balances/{address}")
        return [Coin.from_dict(c) for c in body.get("balances", [])]

    async def code_info(self, code_id: int) -> CodeInfo:
        body = await self.get(f"/cosmwasm/wasm/v1/code/{code_id}")
        info = body["code_info"]
        return CodeInfo(
            code_id=int(info["code_id"]),
            creator=info["creator"],
            checksum=info["data_hash"].lower(),
        )

    async def contract_info(self, address: str) -> ContractInfo:
        body = await self.get(f"/cosmwasm/wasm/v1/contract/{address}")
        info = body["contract_info"]
        return ContractInfo(
            address=body.get("address", address),
            code_id=int(info["code_id"]),
            creator=info["creator"],
            admin=info.get("admin") or None,
            label=info.get("label", ""),
        )

    async def latest_block_height(self) -> int:
        body = await self.get("/cosmos/base/tendermint/v1beta1/blocks/latest")
        return int(body["block"]["header"]["height"])

    # Transactions

    async def broadcast_tx(self, tx_bytes: bytes) -> Dict[str, Any]:
        """
        Broadcast a signed tx and wait until it is included in a block.

        Returns:
            The LCD `tx_response` object. A CheckTx failure is returned
            immediately with its non-zero code.

        Raises:
            TransportError: If the tx is not found before tx_timeout expires
        """
        body = await self._request(
            "POST",
            "/cosmos/tx/v1beta1/txs",
            payload={
                "tx_bytes": base64.b64encode(tx_bytes).decode("ascii"),
                "mode": "BROADCAST_MODE_SYNC",
            },
        )
        tx_response = body["tx_response"]
        if int(tx_response.get("code") or 0) != 0:
            return tx_response

        txhash = tx_response["txhash"]
        logger.debug("broadcast %s, waiting for inclusion", txhash)
        deadline = time.monotonic() + self.tx_timeout
        while True:
            found = await self._request("GET", f"/cosmos/tx/v1beta1/txs/{txhash}", allow_missing=True)
            if found is not None:
                return found["tx_response"]
            if time.monotonic() >= deadline:
                raise TransportError(f"tx {txhash} not included after {self.tx_timeout}s")
            await asyncio.sleep(self.poll_interval)

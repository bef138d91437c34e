"""Shared pytest fixtures for cosmwasm-orchestrator tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import httpx
import pytest

from cosmwasm_orchestrator import (
    ChainInfo,
    Coin,
    ContractEndpoints,
    Daemon,
    FileState,
    LcdTransport,
    Mock,
    NetworkKind,
)
from cosmwasm_orchestrator.exceptions import InvalidAddressError


class TokenContract:
    """Minimal cw20-style token used as native endpoints."""

    def instantiate(self, ctx, msg):
        ctx.storage["name"] = msg["name"]
        ctx.storage["balances"] = {b["address"]: int(b["amount"]) for b in msg["initial_balances"]}
        ctx.attribute("action", "instantiate")

    def execute(self, ctx, msg):
        balances = ctx.storage["balances"]
        if "transfer" in msg:
            amount = int(msg["transfer"]["amount"])
            recipient = msg["transfer"]["recipient"]
            if balances.get(ctx.sender, 0) < amount:
                raise ValueError("Cannot Sub with 0 and %d" % amount)
            balances[ctx.sender] -= amount
            balances[recipient] = balances.get(recipient, 0) + amount
            ctx.attribute("action", "transfer")
            ctx.attribute("amount", amount)
            return None
        if "burn_then_fail" in msg:
            balances[ctx.sender] = 0
            raise RuntimeError("burn aborted")
        if "pay_out" in msg:
            ctx.bank_transfer(msg["pay_out"]["to"], [Coin(int(msg["pay_out"]["amount"]), "ujuno")])
            ctx.event("payout", to=msg["pay_out"]["to"])
            return None
        raise ValueError("unknown message")

    def query(self, ctx, msg):
        if "balance" in msg:
            return {"balance": str(ctx.storage["balances"].get(msg["balance"]["address"], 0))}
        if "token_info" in msg:
            return {"name": ctx.storage["name"], "migrated": ctx.storage.get("migrated", False)}
        raise ValueError("unknown query")

    def migrate(self, ctx, msg):
        ctx.storage["migrated"] = True


class TokenContractV2(TokenContract):
    """Second code version used for migrations."""

    def migrate(self, ctx, msg):
        ctx.storage["migrated"] = True
        ctx.storage["name"] = msg.get("new_name", ctx.storage["name"])


class FakeSender:
    """Sender that accepts juno1-prefixed addresses and records signed messages."""

    def __init__(self, address: str = "juno1sender"):
        self._address = address
        self.signed: List[Sequence[Any]] = []

    def address(self) -> str:
        return self._address

    def validate_address(self, address: str) -> str:
        if not address.startswith("juno1"):
            raise InvalidAddressError(f"invalid bech32 address: {address}")
        return address

    async def sign_tx(self, msgs, memo=None) -> bytes:
        self.signed.append(list(msgs))
        return b"signed-tx"

    def instantiate2_address(self, code_id: int, creator: str, salt: bytes) -> str:
        return f"juno1predicted{code_id}{salt.hex()}"


class FakeLcd:
    """Routes LCD requests for httpx.MockTransport."""

    def __init__(self):
        self.requests: List[tuple] = []
        self.tx_results: List[Dict[str, Any]] = []
        self.routes: Dict[str, tuple] = {}
        self.smart: Dict[str, Any] = {}
        self._pending: Optional[Dict[str, Any]] = None

    def queue_tx(self, events: List[Dict[str, Any]], code: int = 0, raw_log: str = "", txhash: str = "ABC") -> None:
        self.tx_results.append(
            {"txhash": txhash, "height": "42", "code": code, "raw_log": raw_log, "logs": [{"events": events}]}
        )

    def queue_store_code(self, code_id: int) -> None:
        self.queue_tx([{"type": "store_code", "attributes": [{"key": "code_id", "value": str(code_id)}]}])

    def queue_instantiate(self, address: str) -> None:
        self.queue_tx(
            [
                {
                    "type": "instantiate",
                    "attributes": [{"key": "_contract_address", "value": address}, {"key": "code_id", "value": "1"}],
                }
            ]
        )

    def broadcasts(self) -> List[Dict[str, Any]]:
        return [body for method, path, body in self.requests if method == "POST"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if request.method == "POST" and path == "/cosmos/tx/v1beta1/txs":
            result = self.tx_results.pop(0)
            self._pending = result
            return httpx.Response(
                200,
                json={"tx_response": {"txhash": result["txhash"], "code": result["code"], "raw_log": result["raw_log"]}},
            )
        if path.startswith("/cosmos/tx/v1beta1/txs/"):
            return httpx.Response(200, json={"tx_response": self._pending})
        if "/smart/" in path:
            address = path.split("/")[5]
            if address in self.smart:
                return httpx.Response(200, json={"data": self.smart[address]})
            return httpx.Response(500, json={"code": 2, "message": "query wasm contract failed"})
        if path in self.routes:
            status, payload = self.routes[path]
            return httpx.Response(status, json=payload)
        return httpx.Response(404, json={"code": 5, "message": "not found"})


@pytest.fixture
def token_init_msg() -> Dict[str, Any]:
    return {"name": "Token", "initial_balances": [{"address": "sender", "amount": "1000"}]}


@pytest.fixture
def mock_chain() -> Mock:
    chain = Mock("sender")
    chain.set_balance("sender", [Coin(10_000, "ujuno")])
    return chain


@pytest.fixture
def temp_state_file(tmp_path: Path) -> Path:
    return tmp_path / "state" / "state.json"


@pytest.fixture
def wasm_dir(tmp_path: Path) -> Path:
    artifacts = tmp_path / "artifacts"
    artifacts.mkdir()
    (artifacts / "cw20_base.wasm").write_bytes(b"\x00asm\x01\x00\x00\x00")
    return artifacts


@pytest.fixture
def fake_sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def other_sender() -> FakeSender:
    return FakeSender("juno1other")


@pytest.fixture
def fake_lcd() -> FakeLcd:
    return FakeLcd()


@pytest.fixture
def local_chain_info() -> ChainInfo:
    return ChainInfo(chain_id="testing", kind=NetworkKind.LOCAL, lcd_url="http://lcd.test", gas_denom="ujunox")


@pytest.fixture
def no_sleep(monkeypatch) -> List[float]:
    """Replace asyncio.sleep with a recorder; returns the recorded non-zero delays."""
    import asyncio

    delays: List[float] = []

    async def fake_sleep(delay, result=None):
        if delay:
            delays.append(delay)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return delays


def make_daemon(chain: ChainInfo, sender: FakeSender, lcd: FakeLcd, state_file: Path) -> Daemon:
    transport = LcdTransport(chain.lcd_url, poll_interval=0, transport=httpx.MockTransport(lcd.handler))
    state = FileState(state_file, chain.chain_id)
    return Daemon(chain, sender, state=state, transport=transport)


@pytest.fixture
def daemon(local_chain_info: ChainInfo, fake_sender: FakeSender, fake_lcd: FakeLcd, temp_state_file: Path) -> Daemon:
    return make_daemon(local_chain_info, fake_sender, fake_lcd, temp_state_file)


@pytest.fixture
def daemon_factory(fake_sender: FakeSender, fake_lcd: FakeLcd, temp_state_file: Path):
    """Build Daemons on a given ChainInfo sharing the fake sender, LCD and state file."""

    def factory(chain: ChainInfo) -> Daemon:
        return make_daemon(chain, fake_sender, fake_lcd, temp_state_file)

    return factory


@pytest.fixture
def token_endpoints() -> ContractEndpoints:
    return ContractEndpoints(TokenContract())


@pytest.fixture
def token_v2_endpoints() -> ContractEndpoints:
    return ContractEndpoints(TokenContractV2())

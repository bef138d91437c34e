"""Unit tests for transaction response parsing."""

import pytest

from cosmwasm_orchestrator.exceptions import ResponseFieldMissingError
from cosmwasm_orchestrator.types import Coin, Event, TxResponse

LCD_TX_RESPONSE = {
    "height": "1024",
    "txhash": "9F2E",
    "code": 0,
    "raw_log": "",
    "gas_wanted": "200000",
    "gas_used": "150321",
    "logs": [
        {
            "msg_index": 0,
            "events": [
                {"type": "message", "attributes": [{"key": "action", "value": "/cosmwasm.wasm.v1.MsgStoreCode"}]},
                {"type": "store_code", "attributes": [{"key": "code_id", "value": "17"}]},
            ],
        }
    ],
}


class TestFromLcd:
    """Test building responses from LCD tx_response objects."""

    def test_parses_scalar_fields(self):
        """Test that numeric strings are converted."""
        resp = TxResponse.from_lcd(LCD_TX_RESPONSE)

        assert resp.txhash == "9F2E"
        assert resp.height == 1024
        assert resp.gas_wanted == 200000
        assert resp.gas_used == 150321
        assert resp.is_success

    def test_reads_events_from_logs(self):
        """Test that message events are collected from logs."""
        resp = TxResponse.from_lcd(LCD_TX_RESPONSE)

        assert [e.type for e in resp.events] == ["message", "store_code"]

    def test_falls_back_to_top_level_events(self):
        """Test that nodes without logs are read from top-level events."""
        data = dict(LCD_TX_RESPONSE, logs=[], events=LCD_TX_RESPONSE["logs"][0]["events"])

        assert TxResponse.from_lcd(data).uploaded_code_id() == 17

    def test_failed_tx(self):
        """Test that a non-zero code is not a success."""
        resp = TxResponse.from_lcd({"txhash": "AA", "code": 5, "raw_log": "insufficient funds"})

        assert not resp.is_success
        assert resp.raw_log == "insufficient funds"


class TestEventExtraction:
    """Test reading attributes out of responses."""

    def test_uploaded_code_id(self):
        """Test code id extraction from store_code events."""
        assert TxResponse.from_lcd(LCD_TX_RESPONSE).uploaded_code_id() == 17

    def test_instantiated_contract_address(self):
        """Test address extraction from instantiate events."""
        resp = TxResponse(events=[Event("instantiate", [("_contract_address", "juno1xyz"), ("code_id", "1")])])

        assert resp.instantiated_contract_address() == "juno1xyz"

    def test_missing_code_id_raises(self):
        """Test that a response without store_code raises instead of returning None."""
        with pytest.raises(ResponseFieldMissingError, match="code_id"):
            TxResponse(txhash="AA").uploaded_code_id()

    def test_missing_address_raises(self):
        """Test that a response without instantiate raises."""
        with pytest.raises(ResponseFieldMissingError, match="_contract_address"):
            TxResponse(events=[Event("execute", [("_contract_address", "x")])]).instantiated_contract_address()

    def test_malformed_code_id_raises(self):
        """Test that a non-numeric code id is reported."""
        resp = TxResponse(events=[Event("store_code", [("code_id", "abc")])])

        with pytest.raises(ResponseFieldMissingError, match="abc"):
            resp.uploaded_code_id()

    def test_event_attr_values_across_events(self):
        """Test that values are collected from every event of the type."""
        resp = TxResponse(
            events=[
                Event("wasm", [("action", "transfer")]),
                Event("message", [("action", "x")]),
                Event("wasm", [("action", "send")]),
            ]
        )

        assert resp.event_attr_values("wasm", "action") == ["transfer", "send"]


class TestCoin:
    """Test the Coin dataclass."""

    def test_to_dict_uses_string_amount(self):
        """Test that amounts are serialized as decimal strings."""
        assert Coin(100, "ujuno").to_dict() == {"amount": "100", "denom": "ujuno"}

    def test_from_dict(self):
        """Test parsing a coin from LCD JSON."""
        assert Coin.from_dict({"amount": "42", "denom": "ujuno"}) == Coin(42, "ujuno")

"""Unit tests for the deployment state store."""

import json
import threading
from pathlib import Path

import pytest

from cosmwasm_orchestrator.exceptions import AddressNotSetError, CodeIdNotSetError, StateFileError
from cosmwasm_orchestrator.state import FileState, MemoryState
from cosmwasm_orchestrator.types import DeploymentRecord


@pytest.fixture(params=["memory", "file"])
def state(request, temp_state_file: Path):
    """Both store implementations behind the same interface."""
    if request.param == "memory":
        return MemoryState("testing")
    return FileState(temp_state_file, "testing")


class TestStateInterface:
    """Behavior shared by MemoryState and FileState."""

    def test_unknown_name_has_empty_record(self, state):
        """Test that never-deployed contracts have an empty record."""
        assert state.record("token") == DeploymentRecord(address=None, code_id=None)

    def test_get_address_before_instantiate_raises(self, state):
        """Test that a missing address raises AddressNotSetError."""
        with pytest.raises(AddressNotSetError, match="token"):
            state.get_address("token")

    def test_get_code_id_before_upload_raises(self, state):
        """Test that a missing code id raises CodeIdNotSetError."""
        with pytest.raises(CodeIdNotSetError, match="token"):
            state.get_code_id("token")

    def test_code_id_without_address(self, state):
        """Test that an uploaded but not instantiated contract has no address."""
        state.set_code_id("token", 7)

        assert state.get_code_id("token") == 7
        with pytest.raises(AddressNotSetError):
            state.get_address("token")

    def test_set_values_overwrite(self, state):
        """Test that re-uploading and re-instantiating clobber previous values."""
        state.set_code_id("token", 1)
        state.set_address("token", "contract0")
        state.set_code_id("token", 2)
        state.set_address("token", "contract1")

        assert state.get_code_id("token") == 2
        assert state.get_address("token") == "contract1"

    def test_fields_are_independent(self, state):
        """Test that setting one field keeps the other."""
        state.set_code_id("token", 3)
        state.set_address("token", "contract0")

        assert state.record("token") == DeploymentRecord(address="contract0", code_id=3)

    def test_get_all(self, state):
        """Test listing all addresses and code ids."""
        state.set_code_id("token", 1)
        state.set_code_id("staking", 2)
        state.set_address("token", "contract0")

        assert state.get_all_code_ids() == {"token": 1, "staking": 2}
        assert state.get_all_addresses() == {"token": "contract0"}


class TestFileState:
    """File persistence specifics."""

    def test_missing_file_is_empty_state(self, temp_state_file: Path):
        """Test that opening a non-existent file yields empty state."""
        state = FileState(temp_state_file, "testing")

        assert state.get_all_addresses() == {}
        assert not temp_state_file.exists()

    def test_persists_on_every_mutation(self, temp_state_file: Path):
        """Test that each setter writes the file."""
        state = FileState(temp_state_file, "testing", "dev")
        state.set_code_id("token", 4)

        with open(temp_state_file) as f:
            data = json.load(f)
        assert data == {"testing": {"dev": {"token": {"address": None, "code_id": 4}}}}

    def test_reloads_in_new_instance(self, temp_state_file: Path):
        """Test that state survives a process restart."""
        FileState(temp_state_file, "testing").set_address("token", "juno1abc")

        reopened = FileState(temp_state_file, "testing")

        assert reopened.get_address("token") == "juno1abc"

    def test_partitioned_by_chain_and_deployment(self, temp_state_file: Path):
        """Test that chains and deployments do not see each other's records."""
        FileState(temp_state_file, "testing", "dev").set_code_id("token", 1)
        FileState(temp_state_file, "testing", "prod").set_code_id("token", 2)
        FileState(temp_state_file, "uni-6", "dev").set_code_id("token", 3)

        assert FileState(temp_state_file, "testing", "dev").get_code_id("token") == 1
        assert FileState(temp_state_file, "testing", "prod").get_code_id("token") == 2
        assert FileState(temp_state_file, "uni-6", "dev").get_code_id("token") == 3

    def test_writers_do_not_lose_other_keys(self, temp_state_file: Path):
        """Test that two handles writing different names keep both updates."""
        first = FileState(temp_state_file, "testing")
        second = FileState(temp_state_file, "testing")

        first.set_address("token", "contract0")
        second.set_address("staking", "contract1")

        assert FileState(temp_state_file, "testing").get_all_addresses() == {
            "token": "contract0",
            "staking": "contract1",
        }

    def test_concurrent_threads(self, temp_state_file: Path):
        """Test that concurrent writers from threads keep every key."""
        handles = [FileState(temp_state_file, "testing") for _ in range(8)]
        threads = [
            threading.Thread(target=h.set_code_id, args=(f"contract-{i}", i)) for i, h in enumerate(handles)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        final = FileState(temp_state_file, "testing").get_all_code_ids()
        assert final == {f"contract-{i}": i for i in range(8)}

    def test_reload_refreshes_snapshot(self, temp_state_file: Path):
        """Test that reload() picks up writes from other handles."""
        reader = FileState(temp_state_file, "testing")
        FileState(temp_state_file, "testing").set_code_id("token", 9)

        with pytest.raises(CodeIdNotSetError):
            reader.get_code_id("token")
        reader.reload()
        assert reader.get_code_id("token") == 9

    def test_corrupt_file_raises(self, temp_state_file: Path):
        """Test that a corrupt state file is reported, not silently reset."""
        temp_state_file.parent.mkdir(parents=True)
        temp_state_file.write_text("{ invalid json")

        with pytest.raises(StateFileError):
            FileState(temp_state_file, "testing")

    def test_failed_write_leaves_no_temp_file(self, temp_state_file: Path, monkeypatch):
        """Test that a failed replace removes its temp file and keeps the old state."""
        state = FileState(temp_state_file, "testing")
        state.set_code_id("token", 1)

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("cosmwasm_orchestrator.state.os.replace", fail_replace)

        with pytest.raises(StateFileError, match="disk full"):
            state.set_code_id("token", 2)

        monkeypatch.undo()
        leftovers = [p.name for p in temp_state_file.parent.iterdir() if p.name.startswith(".state.json.")]
        assert leftovers == []
        assert FileState(temp_state_file, "testing").get_code_id("token") == 1

    def test_open_uses_state_file_env(self, tmp_path: Path, monkeypatch):
        """Test that FileState.open honors $STATE_FILE."""
        target = tmp_path / "env-state.json"
        monkeypatch.setenv("STATE_FILE", str(target))

        FileState.open("testing").set_code_id("token", 1)

        assert target.exists()

from __future__ import annotations

import pytest

from tdx_command import (
    CommandAck,
    CompositeBatchError,
    ConvergenceFailed,
    ConvergenceTimedOut,
    RemoteRejection,
    ResourceState,
    TransportError,
)

pytestmark = [pytest.mark.unit]


class TestResourceState:
    def test_from_response(self):
        state = ResourceState.from_response(
            {"id": "ds-1", "indexStatus": "building", "store": "s1", "importing": True}
        )
        assert state == ResourceState(id="ds-1", index_status="building", store="s1", importing=True)

    def test_unknown_index_status_is_kept(self):
        state = ResourceState.from_response({"id": "ds-1", "indexStatus": "rebuilding-v2"})
        assert state.index_status == "rebuilding-v2"

    def test_missing_fields(self):
        state = ResourceState.from_response({"id": "ds-1"})
        assert state.index_status is None
        assert state.store is None
        assert state.importing is False

    @pytest.mark.parametrize("importing", ["false", "true", 1, None])
    def test_importing_must_be_boolean_true(self, importing: object):
        state = ResourceState.from_response({"id": "ds-1", "importing": importing})
        assert state.importing is False

    @pytest.mark.parametrize("payload", [None, [], "built"])
    def test_malformed_payload(self, payload: object):
        with pytest.raises(TransportError):
            ResourceState.from_response(payload)


class TestCommandAck:
    def test_resource_id_from_response(self):
        ack = CommandAck(command="resource/create", body={"response": {"id": "ds-1"}})
        assert ack.resource_id == "ds-1"

    @pytest.mark.parametrize("body", [None, {}, {"response": None}, {"response": {}}, "ok"])
    def test_no_resource_id(self, body: object):
        assert CommandAck(command="resource/delete", body=body).resource_id is None


class TestErrors:
    def test_rejection_str(self):
        assert str(RemoteRejection("bad id", status=400, code="BadRequestError")) == "BadRequestError (400): bad id"
        assert str(RemoteRejection("boom", status=500)) == "HTTP 500: boom"

    def test_composite_failures(self):
        assert CompositeBatchError("x|y", status=400).failures() == ["x", "y"]
        assert CompositeBatchError("", status=400).failures() == []

    def test_failed_error_dict(self):
        state = ResourceState.from_response({"id": "ds-1", "indexStatus": "error"})
        error = ConvergenceFailed("ds-1", "error", last_state=state)
        assert error.to_error_dict() == {
            "category": "failed",
            "message": "Resource ds-1 reached fatal state: error",
            "resource_id": "ds-1",
            "last_state": {"id": "ds-1", "indexStatus": "error"},
            "detail": "error",
        }

    def test_timed_out_is_distinct_from_failed(self):
        error = ConvergenceTimedOut("ds-1", 5.0, goal="indexStatus=built")
        assert not isinstance(error, ConvergenceFailed)
        assert error.to_error_dict()["category"] == "timeout"
        assert "after 5.0s" in error.message

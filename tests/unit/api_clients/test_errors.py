"""Tests for the SmolKV error taxonomy and response interpretation."""

from typing import List

import httpx
import pytest
from pydantic import BaseModel

from smolkv_client.api_clients.errors import (
    AlreadyExistsError,
    BadRequestError,
    DecodeError,
    NotFoundError,
    ServerError,
    SmolKVError,
    TransportError,
    decode_json,
    error_for_exception,
    error_for_status,
    interpret_response,
)


def _response(status: int, **kwargs) -> httpx.Response:
    request = httpx.Request("GET", "http://smolkv.test/api/users/1")
    return httpx.Response(status, request=request, **kwargs)


class User(BaseModel):
    name: str


class TestErrorForStatus:
    """Test the status code to error kind mapping."""

    def test_404_maps_to_not_found_with_path(self):
        error = error_for_status(404, "/api/users/1", "ignored")
        assert isinstance(error, NotFoundError)
        assert error.path == "/api/users/1"
        assert str(error) == "not found: /api/users/1"

    def test_409_maps_to_already_exists_with_path(self):
        error = error_for_status(409, "/api/users", "")
        assert isinstance(error, AlreadyExistsError)
        assert str(error) == "already exists: /api/users"

    def test_400_maps_to_bad_request_with_body(self):
        error = error_for_status(400, "/api/users", "unexpected token '>'")
        assert isinstance(error, BadRequestError)
        assert error.detail == "unexpected token '>'"
        assert error.status_code == 400

    @pytest.mark.parametrize("status", [401, 403, 418, 500, 503])
    def test_other_statuses_map_to_server_error(self, status):
        error = error_for_status(status, "/api/users", "body")
        assert isinstance(error, ServerError)
        assert error.status_code == status
        assert str(error) == f"server error: unexpected status: {status}"

    def test_all_kinds_share_base_class(self):
        for status in (400, 404, 409, 500):
            assert isinstance(error_for_status(status, "/p", ""), SmolKVError)


class TestInterpretResponse:
    """Test decoding of successful responses and raising of failures."""

    @pytest.mark.parametrize("status", [200, 201])
    def test_success_statuses_decode_json(self, status):
        assert interpret_response(_response(status, json={"name": "a"})) == {"name": "a"}

    def test_success_validates_into_model(self):
        user = interpret_response(_response(200, json={"name": "a"}), User)
        assert isinstance(user, User)
        assert user.name == "a"

    def test_success_validates_into_type_adapter_type(self):
        assert interpret_response(_response(200, json=[1, 2]), List[int]) == [1, 2]

    def test_invalid_json_on_success_is_decode_error(self):
        with pytest.raises(DecodeError) as exc_info:
            interpret_response(_response(200, text="<html>oops</html>"))
        assert str(exc_info.value).startswith("json error:")

    def test_model_mismatch_is_decode_error(self):
        with pytest.raises(DecodeError):
            interpret_response(_response(200, json={"title": "x"}), User)

    def test_not_found_reports_request_path(self):
        with pytest.raises(NotFoundError) as exc_info:
            interpret_response(_response(404, text="missing"))
        assert exc_info.value.path == "/api/users/1"

    def test_bad_request_reports_body_text(self):
        with pytest.raises(BadRequestError) as exc_info:
            interpret_response(_response(400, text="invalid query expression"))
        assert exc_info.value.detail == "invalid query expression"

    def test_204_is_not_treated_as_decodable_success(self):
        with pytest.raises(ServerError) as exc_info:
            interpret_response(_response(204))
        assert exc_info.value.status_code == 204


class TestDecodeJson:
    def test_decodes_bytes(self):
        assert decode_json(b'{"a": [1, null, true]}') == {"a": [1, None, True]}

    def test_rejects_truncated_document(self):
        with pytest.raises(DecodeError):
            decode_json('{"a": ')


class TestErrorForException:
    """Test classification of httpx failures."""

    def test_decoding_failure_is_decode_error(self):
        error = error_for_exception(httpx.DecodingError("Error -3 while decompressing data"))
        assert isinstance(error, DecodeError)
        assert "decompressing" in str(error)

    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("refused"),
            httpx.InvalidURL("Invalid non-printable ASCII character in URL"),
            httpx.RemoteProtocolError("peer closed connection"),
        ],
    )
    def test_other_failures_are_transport_errors(self, exc):
        assert isinstance(error_for_exception(exc), TransportError)

"""Error taxonomy for SmolKV API operations.

Every failure surfaced by the client is one of a closed set of kinds:
transport failures, JSON encode/decode failures, local file IO failures,
and the server status codes mapped by ``error_for_status``. Nothing here
retries; errors are raised once and handed back to the caller unchanged.
"""

import json
import logging
from typing import Any, Optional, Type, Union

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class SmolKVError(Exception):
    """Base exception for SmolKV client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(SmolKVError):
    """Raised when the HTTP call itself fails (connection, TLS, timeout)."""

    def __init__(self, detail: str):
        super().__init__(f"http error: {detail}")


class DecodeError(SmolKVError):
    """Raised when a request or response body is not valid JSON for its type."""

    def __init__(self, detail: str):
        super().__init__(f"json error: {detail}")


class FileIOError(SmolKVError):
    """Raised when reading or writing a local file fails."""

    def __init__(self, path: str, detail: str):
        super().__init__(f"io error: {path}: {detail}")
        self.path = path


class NotFoundError(SmolKVError):
    """Raised on 404; carries the resource path."""

    def __init__(self, path: str):
        super().__init__(f"not found: {path}", 404)
        self.path = path


class AlreadyExistsError(SmolKVError):
    """Raised on 409; carries the resource path."""

    def __init__(self, path: str):
        super().__init__(f"already exists: {path}", 409)
        self.path = path


class BadRequestError(SmolKVError):
    """Raised on 400; carries the server-supplied diagnostic text."""

    def __init__(self, detail: str):
        super().__init__(f"bad request: {detail}", 400)
        self.detail = detail


class ServerError(SmolKVError):
    """Raised for any other non-success status."""

    def __init__(self, status_code: int):
        super().__init__(f"server error: unexpected status: {status_code}", status_code)


SUCCESS_STATUSES = (200, 201)


def error_for_status(status_code: int, path: str, body: str) -> SmolKVError:
    """Map a non-success status code to its error kind.

    Args:
        status_code: HTTP status returned by the server
        path: Resource path reported for 404/409
        body: Response body text reported for 400

    Returns:
        The error instance to raise
    """
    if status_code == 404:
        return NotFoundError(path)
    if status_code == 409:
        return AlreadyExistsError(path)
    if status_code == 400:
        return BadRequestError(body)
    return ServerError(status_code)


def error_for_exception(exc: Exception) -> SmolKVError:
    """Classify an httpx failure raised while building, sending or reading a request.

    A body whose content encoding cannot be undone is a decode failure;
    everything else below the HTTP status layer, including URLs httpx
    refuses to build, is a transport failure.
    """
    if isinstance(exc, httpx.DecodingError):
        return DecodeError(str(exc) or type(exc).__name__)
    return TransportError(str(exc) or type(exc).__name__)


def decode_json(payload: Union[str, bytes], model: Optional[Any] = None) -> Any:
    """Parse JSON text and optionally validate it into ``model``.

    ``model`` may be a pydantic model class or any type accepted by
    ``pydantic.TypeAdapter`` (e.g. ``List[int]``).

    Raises:
        DecodeError: If the text is not JSON or fails validation
    """
    try:
        value = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(str(e)) from e

    if model is None:
        return value

    try:
        if isinstance(model, type) and issubclass(model, BaseModel):
            return model.model_validate(value)
        return TypeAdapter(model).validate_python(value)
    except ValidationError as e:
        raise DecodeError(str(e)) from e


def interpret_response(
    response: httpx.Response, model: Optional[Union[Type[BaseModel], Any]] = None
) -> Any:
    """Turn a completed response into a decoded value or a classified error.

    Status 200/201 decode the body (validated into ``model`` when given);
    every other status raises the error chosen by ``error_for_status``.

    Raises:
        DecodeError: If a successful body cannot be decoded
        NotFoundError: On 404
        AlreadyExistsError: On 409
        BadRequestError: On 400
        ServerError: On any other status
    """
    if response.status_code in SUCCESS_STATUSES:
        return decode_json(response.content, model)

    error = error_for_status(response.status_code, response.url.path, response.text)
    logger.debug(f"SmolKV API error for {response.url.path}: {error}")
    raise error

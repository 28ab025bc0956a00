"""SmolKV Client for collection, key, batch, import, watch and backup operations.

One coroutine per server operation. Each call maps to exactly one HTTP
request, and its response is interpreted by ``interpret_response`` unless
the operation only reports success or failure.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union, overload
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from .base_client import SmolKVAPIClient
from .change_feed import ChangeFeed
from .errors import FileIOError, NotFoundError, ServerError, interpret_response
from .models import BatchOperation
from .query_builder import QueryBuilder

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

IMPORT_FILENAME = "backup.sst"

# The change feed may sit idle for long stretches; only the read timeout is lifted.
STREAM_TIMEOUT = httpx.Timeout(connect=10.0, read=None, write=10.0, pool=5.0)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _key_path(collection: str, key: str) -> str:
    # "/" stays a path separator; "?", "#" and "%" must not end or alter the key
    return f"{collection}/{quote(key, safe='/')}"


def _read_file(path: Union[str, Path]) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise FileIOError(str(path), e.strerror or str(e)) from e


def _write_file(path: Union[str, Path], data: bytes) -> Path:
    target = Path(path)
    try:
        target.write_bytes(data)
    except OSError as e:
        raise FileIOError(str(path), e.strerror or str(e)) from e
    return target


class SmolKVClient(SmolKVAPIClient):
    """Client for a SmolKV server.

    Example::

        async with SmolKVClient("http://localhost:8080", secret="s3cr3t") as kv:
            await kv.create_collection("users")
            await kv.put("users", "1", {"name": "a"})
            rows = await kv.list_collection("users", QueryBuilder().limit(10))
    """

    # collection operations

    async def collection_exists(self, name: str) -> bool:
        """Check whether a collection exists. Never raises for a status code."""
        return await self._status_is_success("HEAD", name)

    async def create_collection(self, name: str) -> Any:
        """Create a collection.

        Raises:
            AlreadyExistsError: If the collection already exists
        """
        response = await self._send("PUT", self.url(name))
        return interpret_response(response)

    async def drop_collection(self, name: str) -> Any:
        """Drop a collection and all its records.

        Raises:
            NotFoundError: If the collection does not exist
        """
        response = await self._send("DELETE", self.url(name))
        return interpret_response(response)

    async def list_collection(
        self, name: str, query: Optional[QueryBuilder] = None
    ) -> List[Any]:
        """List documents in key order, optionally bounded by a key range.

        The builder's filter expression is not applied here; use
        ``query_collection`` for filtered queries.
        """
        query = query or QueryBuilder()
        response = await self._send("GET", self.url(name), params=query.to_params())
        return interpret_response(response, List[Any])

    async def query_collection(
        self, name: str, query: Optional[QueryBuilder] = None
    ) -> List[Any]:
        """Run a query whose filter expression is evaluated by the server.

        Raises:
            BadRequestError: If the server rejects the filter expression
        """
        query = query or QueryBuilder()
        response = await self._send("POST", self.url(name), json_body=query.to_body())
        return interpret_response(response, List[Any])

    # key operations

    @overload
    async def get(self, collection: str, key: str) -> Any: ...

    @overload
    async def get(self, collection: str, key: str, model: Type[ModelT]) -> ModelT: ...

    async def get(self, collection, key, model=None):
        """Fetch a document, optionally validated into ``model``.

        Raises:
            NotFoundError: If the key does not exist
            DecodeError: If the document does not fit ``model``
        """
        response = await self._send("GET", self.url(_key_path(collection, key)))
        return interpret_response(response, model)

    async def put(self, collection: str, key: str, value: Any) -> Any:
        """Store a document under ``key``, replacing any previous value."""
        response = await self._send(
            "PUT", self.url(_key_path(collection, key)), json_body=_to_jsonable(value)
        )
        return interpret_response(response)

    async def delete(self, collection: str, key: str) -> bool:
        """Delete a key; returns False rather than raising when it is absent."""
        return await self._status_is_success("DELETE", _key_path(collection, key))

    async def exists(self, collection: str, key: str) -> bool:
        return await self._status_is_success("HEAD", _key_path(collection, key))

    async def batch_put(
        self, collection: str, items: Sequence[BatchOperation[Any]]
    ) -> None:
        """Write several documents in one request; the server accepts all or none."""
        body = [
            {"key": item.key, "value": _to_jsonable(item.value)} for item in items
        ]
        response = await self._send(
            "PUT", self.url(f"{collection}/_batch"), json_body=body
        )
        interpret_response(response)

    async def import_values(
        self, collection: str, key_field: Optional[str], data: bytes
    ) -> Any:
        """Bulk-import a JSON array of objects.

        Args:
            collection: Target collection
            key_field: Document property used as each record's key; dotted
                paths such as ``owner.login`` address nested fields
            data: Raw JSON file contents
        """
        params: Dict[str, str] = {}
        if key_field:
            params["key"] = key_field
        response = await self._send(
            "POST",
            self.url(f"{collection}/_import"),
            params=params,
            files={"file": (IMPORT_FILENAME, data)},
        )
        return interpret_response(response)

    async def import_file(
        self,
        collection: str,
        path: Union[str, Path],
        key_field: Optional[str] = None,
    ) -> Any:
        """Read a JSON file from disk and import it.

        Raises:
            FileIOError: If the file cannot be read
        """
        return await self.import_values(collection, key_field, _read_file(path))

    # change feed

    async def subscribe(self, collection: str) -> httpx.Response:
        """Open the raw change-feed stream for a collection.

        The returned response is unread; the caller owns it and must close it.

        Raises:
            NotFoundError: If the server does not answer with 200
        """
        response = await self._send(
            "GET",
            self.url(f"{collection}/_subscribe"),
            stream=True,
            timeout=STREAM_TIMEOUT,
        )
        if response.status_code != 200:
            await response.aclose()
            raise NotFoundError(collection)
        return response

    async def watch(self, collection: str) -> ChangeFeed:
        """Subscribe to a collection and decode its events lazily."""
        response = await self.subscribe(collection)
        return ChangeFeed(response, collection)

    # backup and restore

    async def start_backup(self, collection: str) -> Any:
        response = await self._send("POST", self.url(f"{collection}/_backup"))
        return interpret_response(response)

    async def backup_status(self, collection: str, backup_id: str) -> Any:
        response = await self._send(
            "GET", self.url(f"{collection}/_backup/status"), params={"id": backup_id}
        )
        return interpret_response(response)

    async def upload_backup(self, collection: str, data: bytes) -> Any:
        """Upload a snapshot file so it can later be restored."""
        response = await self._send(
            "POST",
            self.url(f"{collection}/_backup/upload"),
            files={"file": (f"{collection}-backup.sst", data)},
        )
        return interpret_response(response)

    async def upload_backup_file(self, collection: str, path: Union[str, Path]) -> Any:
        return await self.upload_backup(collection, _read_file(path))

    async def download_backup(self, collection: str, backup_id: str) -> bytes:
        """Fetch a backup artifact.

        Artifacts are served as static files next to the API, not under it.

        Raises:
            NotFoundError: If the artifact does not exist
            ServerError: On any other non-200 status
        """
        url = f"{self.endpoint}/backups/{collection}-{backup_id}.sst"
        response = await self._send("GET", url)
        if response.status_code == 200:
            return response.content
        if response.status_code == 404:
            raise NotFoundError(backup_id)
        raise ServerError(response.status_code)

    async def download_backup_to(
        self, collection: str, backup_id: str, path: Union[str, Path]
    ) -> Path:
        """Download a backup artifact into ``path``.

        Raises:
            FileIOError: If the file cannot be written
        """
        data = await self.download_backup(collection, backup_id)
        return _write_file(path, data)

    async def start_restore(self, collection: str, backup_id: str) -> Any:
        response = await self._send(
            "POST", self.url(f"{collection}/_restore"), params={"backup_id": backup_id}
        )
        return interpret_response(response)

    async def restore_status(self, collection: str, restore_id: str) -> Any:
        response = await self._send(
            "GET", self.url(f"{collection}/_restore/status"), params={"id": restore_id}
        )
        return interpret_response(response)

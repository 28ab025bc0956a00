"""Backup and restore job handles.

A job is nothing more than a server-assigned id and the collection it
belongs to. Starting a job issues one request; every ``status()`` call
fetches fresh state from the server. Polling cadence and completion
detection are left to the caller.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Union

from .errors import DecodeError

if TYPE_CHECKING:
    from .kv_client import SmolKVClient


def job_id_from(document: Any, kind: str) -> str:
    """Extract the job id from a start response.

    Looks for ``id`` first, then ``<kind>_id`` (``backup_id``, ``restore_id``).

    Raises:
        DecodeError: If the response carries no id
    """
    if isinstance(document, Mapping):
        for name in ("id", f"{kind}_id"):
            value = document.get(name)
            if value is not None and value != "":
                return str(value)
    raise DecodeError(f"{kind} start response has no job id: {document!r}")


@dataclass(frozen=True)
class BackupJob:
    """A backup running (or finished) on the server."""

    client: "SmolKVClient" = field(repr=False)
    collection: str
    id: str

    @classmethod
    async def start(cls, client: "SmolKVClient", collection: str) -> "BackupJob":
        document = await client.start_backup(collection)
        return cls(client, collection, job_id_from(document, "backup"))

    async def status(self) -> Any:
        return await self.client.backup_status(self.collection, self.id)

    async def download(self) -> bytes:
        return await self.client.download_backup(self.collection, self.id)

    async def download_to(self, path: Union[str, Path]) -> Path:
        return await self.client.download_backup_to(self.collection, self.id, path)


@dataclass(frozen=True)
class RestoreJob:
    """A restore of a collection from a previously created backup."""

    client: "SmolKVClient" = field(repr=False)
    collection: str
    id: str

    @classmethod
    async def start(
        cls, client: "SmolKVClient", collection: str, backup_id: str
    ) -> "RestoreJob":
        document = await client.start_restore(collection, backup_id)
        return cls(client, collection, job_id_from(document, "restore"))

    async def status(self) -> Any:
        return await self.client.restore_status(self.collection, self.id)

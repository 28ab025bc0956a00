"""Wire models shared by the SmolKV client."""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SortOrder(str, Enum):
    """Key ordering for listings and queries."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class CollectionEvent(BaseModel):
    """A single mutation observed on a collection's change feed."""

    operation: str = Field(..., description="Mutation kind reported by the server")
    key: str = Field(..., description="Key that was mutated")
    value: Any = Field(None, description="Document associated with the mutation")
    server_time: Optional[int] = Field(
        None, ge=0, le=2**64 - 1, description="Server timestamp of the mutation"
    )


class BatchOperation(BaseModel, Generic[T]):
    """One entry of a batch write."""

    key: str
    value: T

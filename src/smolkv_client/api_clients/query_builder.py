"""Range/filter/sort options for collection listings and queries."""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Union

from .models import SortOrder


@dataclass(frozen=True)
class QueryBuilder:
    """Immutable description of a listing or query request.

    Each fluent method returns a new builder, so a builder can be shared
    and extended without affecting other call sites::

        base = QueryBuilder().limit(10)
        recent = base.order("desc").keys(True)
    """

    from_key: Optional[str] = None
    to_key: Optional[str] = None
    max_results: Optional[int] = None
    sort_order: Optional[SortOrder] = None
    include_keys: bool = False
    filter_expression: Optional[str] = None

    def __post_init__(self):
        if self.max_results is not None and self.max_results < 0:
            raise ValueError("limit must be a non-negative integer")
        if self.sort_order is not None and not isinstance(self.sort_order, SortOrder):
            object.__setattr__(self, "sort_order", SortOrder(self.sort_order))

    def from_(self, key: Optional[str]) -> "QueryBuilder":
        """Start the range at ``key`` (inclusive); ``None`` clears it."""
        return replace(self, from_key=key)

    def to(self, key: Optional[str]) -> "QueryBuilder":
        """End the range at ``key``; ``None`` clears it."""
        return replace(self, to_key=key)

    def limit(self, limit: Optional[int]) -> "QueryBuilder":
        return replace(self, max_results=limit)

    def order(self, order: Union[SortOrder, str]) -> "QueryBuilder":
        return replace(self, sort_order=SortOrder(order))

    def keys(self, include_keys: bool = True) -> "QueryBuilder":
        return replace(self, include_keys=include_keys)

    def query(self, expression: Optional[str]) -> "QueryBuilder":
        """Filter results with a server-side expression such as ``price > 10``."""
        return replace(self, filter_expression=expression)

    def _range_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if self.from_key is not None:
            fields["from"] = self.from_key
        if self.to_key is not None:
            fields["to"] = self.to_key
        if self.max_results is not None:
            fields["limit"] = self.max_results
        if self.sort_order is not None:
            fields["order"] = self.sort_order.value
        return fields

    def to_params(self) -> Dict[str, Any]:
        """Serialize as URL query parameters for a listing request.

        The filter expression is never part of a listing.
        """
        params = self._range_fields()
        params["keys"] = "true" if self.include_keys else "false"
        return params

    def to_body(self) -> Dict[str, Any]:
        """Serialize as the JSON body of a query request.

        An empty or absent filter expression means no filter, so ``query``
        is only present when it has content.
        """
        body = self._range_fields()
        body["keys"] = self.include_keys
        if self.filter_expression:
            body["query"] = self.filter_expression
        return body

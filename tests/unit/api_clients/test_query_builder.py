"""Tests for QueryBuilder serialization and immutability."""

import pytest

from smolkv_client.api_clients.models import SortOrder
from smolkv_client.api_clients.query_builder import QueryBuilder


@pytest.fixture
def full_builder() -> QueryBuilder:
    return QueryBuilder().from_("a").to("z").limit(10).order(SortOrder.DESC).keys(True)


class TestQueryBuilderFluentApi:
    """Test chained setters."""

    def test_defaults(self):
        builder = QueryBuilder()
        assert builder.from_key is None
        assert builder.to_key is None
        assert builder.max_results is None
        assert builder.sort_order is None
        assert builder.include_keys is False
        assert builder.filter_expression is None

    def test_setters_return_new_instances(self):
        base = QueryBuilder().limit(5)
        extended = base.keys(True).query("age > 3")

        assert base.include_keys is False
        assert base.filter_expression is None
        assert extended.max_results == 5
        assert extended.include_keys is True
        assert extended.filter_expression == "age > 3"

    def test_builder_is_frozen(self):
        with pytest.raises(AttributeError):
            QueryBuilder().max_results = 3  # type: ignore[misc]

    @pytest.mark.parametrize("value", ["asc", "ASC", "Asc"])
    def test_order_accepts_strings(self, value):
        assert QueryBuilder().order(value).sort_order is SortOrder.ASC

    def test_unknown_order_is_rejected(self):
        with pytest.raises(ValueError):
            QueryBuilder().order("sideways")

    def test_negative_limit_is_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            QueryBuilder().limit(-1)

    def test_none_clears_range_bounds(self, full_builder):
        cleared = full_builder.from_(None).to(None).limit(None)
        assert cleared.to_params() == {"order": "desc", "keys": "true"}


class TestQueryBuilderSerialization:
    """Test the listing (query string) and query (JSON body) forms."""

    def test_listing_form_flattens_fields(self, full_builder):
        assert full_builder.to_params() == {
            "from": "a",
            "to": "z",
            "limit": 10,
            "order": "desc",
            "keys": "true",
        }

    def test_listing_form_never_includes_filter(self, full_builder):
        assert "query" not in full_builder.query("").to_params()
        assert "query" not in full_builder.query("price > 10").to_params()

    def test_listing_form_always_states_keys(self):
        assert QueryBuilder().to_params() == {"keys": "false"}

    def test_body_form_includes_non_empty_filter(self, full_builder):
        assert full_builder.query("price > 10").to_body() == {
            "from": "a",
            "to": "z",
            "limit": 10,
            "order": "desc",
            "keys": True,
            "query": "price > 10",
        }

    @pytest.mark.parametrize("expression", [None, ""])
    def test_body_form_omits_empty_filter(self, full_builder, expression):
        body = full_builder.query(expression).to_body()
        assert "query" not in body
        assert body["keys"] is True

    def test_empty_builder_body(self):
        assert QueryBuilder().to_body() == {"keys": False}

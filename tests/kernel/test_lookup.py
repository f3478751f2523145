"""Tests for explicit join resolution (Found / Missing, unwrap_one)."""

import pytest

from ledger_kernel.domain.lookup import Found, Lookup, Missing, build_lookups, unwrap_one


class TestUnwrapOne:
    def test_mapping_is_found(self):
        assert unwrap_one({"id": 1}) == Found({"id": 1})

    def test_single_element_list_is_found(self):
        assert unwrap_one([{"id": 1}]) == Found({"id": 1})

    def test_first_element_of_longer_list(self):
        assert unwrap_one([{"id": 1}, {"id": 2}]) == Found({"id": 1})

    @pytest.mark.parametrize("value", [None, [], (), "text", 3, [None]])
    def test_missing(self, value):
        assert isinstance(unwrap_one(value), Missing)


class TestLookup:
    def setup_method(self):
        self.lookup = Lookup.from_rows("warehouses", [
            {"id": 1, "name": "Main Store"},
            {"id": "2", "name": "Cold Room"},
            {"name": "No id"},
        ])

    def test_rows_without_id_are_skipped(self):
        assert len(self.lookup) == 2
        assert self.lookup.ids() == ("1", "2")

    def test_ids_are_normalized(self):
        assert self.lookup.get(1.0)["name"] == "Main Store"
        assert self.lookup.get(2)["name"] == "Cold Room"
        assert "1" in self.lookup

    def test_resolve_found(self):
        resolution = self.lookup.resolve("1")
        assert isinstance(resolution, Found)
        assert resolution.value["name"] == "Main Store"

    def test_resolve_missing_names_the_lookup(self):
        resolution = self.lookup.resolve(99)
        assert isinstance(resolution, Missing)
        assert "warehouses" in resolution.reason

    def test_resolve_null_id(self):
        assert isinstance(self.lookup.resolve(None), Missing)
        assert self.lookup.get(None) is None


class TestBuildLookups:
    def test_missing_collections_are_empty(self):
        lookups = build_lookups({"products": [{"id": 1}]})
        assert len(lookups.products) == 1
        assert len(lookups.warehouses) == 0
        assert len(lookups.shipments) == 0

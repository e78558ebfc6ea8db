"""Tests for categories and beverages."""

from __future__ import annotations

import pytest

from nomilog.catalog import CatalogManager
from nomilog.posts import PostManager
from nomilog.storage.db import DatabaseManager
from nomilog.storage.errors import (
    DuplicateNameError,
    InUseError,
    InvalidInputError,
    NotFoundError,
)


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(tmp_path / "catalog.db", default_categories=[])
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def catalog(db):
    return CatalogManager(db)


@pytest.fixture
def beer(catalog):
    return catalog.create_category("Beer", 1)


class TestCategories:
    def test_list_ordered_by_display_order_then_name(self, catalog):
        catalog.create_category("Wine", 2)
        catalog.create_category("Sake", 1)
        catalog.create_category("Beer", 1)
        catalog.create_category("Cider")

        names = [c.name for c in catalog.list_categories()]
        assert names == ["Cider", "Beer", "Sake", "Wine"]

    def test_create_trims_name(self, catalog):
        category_id = catalog.create_category("  Rum  ")
        [category] = catalog.list_categories()
        assert category.id == category_id
        assert category.name == "Rum"
        assert category.display_order == 0
        assert category.created_at is not None

    def test_create_duplicate_name(self, catalog, beer):
        with pytest.raises(DuplicateNameError):
            catalog.create_category(" Beer ")

    def test_names_are_case_sensitive(self, catalog, beer):
        catalog.create_category("beer")
        assert len(catalog.list_categories()) == 2

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_create_rejects_blank_name(self, catalog, name):
        with pytest.raises(InvalidInputError):
            catalog.create_category(name)

    def test_create_rejects_non_integer_order(self, catalog):
        with pytest.raises(InvalidInputError):
            catalog.create_category("Beer", "first")

    @pytest.mark.parametrize("order", [2.7, True, float("inf")])
    def test_create_rejects_fractional_order(self, catalog, order):
        with pytest.raises(InvalidInputError):
            catalog.create_category("Beer", order)
        assert catalog.list_categories() == []

    def test_create_accepts_integral_order(self, catalog):
        catalog.create_category("Beer", 2.0)
        assert catalog.list_categories()[0].display_order == 2

    def test_delete_unused_category(self, catalog, beer):
        assert catalog.delete_category(beer) is True
        assert catalog.list_categories() == []

    def test_delete_category_in_use(self, catalog, beer):
        catalog.create_beverage("Lager", 5.0, beer)
        catalog.create_beverage("Stout", 6.0, beer)

        with pytest.raises(InUseError) as excinfo:
            catalog.delete_category(beer)
        assert excinfo.value.count == 2
        assert [c.id for c in catalog.list_categories()] == [beer]

    def test_delete_unknown_category(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.delete_category(42)


class TestBeverages:
    def test_create_and_list_with_category_name(self, catalog, beer):
        wine = catalog.create_category("Wine", 2)
        catalog.create_beverage("Stout", 6.0, beer)
        catalog.create_beverage("Merlot", 13.5, wine)
        catalog.create_beverage("Lager", 5.0, beer)

        beverages = catalog.list_beverages()
        assert [b.name for b in beverages] == ["Lager", "Merlot", "Stout"]
        assert beverages[1].category_name == "Wine"
        assert beverages[1].alcohol_content == 13.5

    def test_list_by_category(self, catalog, beer):
        wine = catalog.create_category("Wine", 2)
        catalog.create_beverage("Stout", 6.0, beer)
        catalog.create_beverage("Merlot", 13.5, wine)
        catalog.create_beverage("Lager", 5.0, beer)

        assert [b.name for b in catalog.list_beverages_by_category(beer)] == ["Lager", "Stout"]
        assert catalog.list_beverages_by_category(999) == []

    def test_alcohol_content_optional(self, catalog, beer):
        beverage_id = catalog.create_beverage("Mystery brew", None, beer)
        assert catalog.get_beverage(beverage_id).alcohol_content is None

    def test_create_trims_name(self, catalog, beer):
        beverage_id = catalog.create_beverage("  IPA ", 6.5, beer)
        assert catalog.get_beverage(beverage_id).name == "IPA"

    def test_create_rejects_blank_name(self, catalog, beer):
        with pytest.raises(InvalidInputError):
            catalog.create_beverage("  ", 5.0, beer)

    def test_create_rejects_negative_alcohol(self, catalog, beer):
        with pytest.raises(InvalidInputError):
            catalog.create_beverage("Lager", -1, beer)

    def test_create_unknown_category(self, catalog):
        with pytest.raises(NotFoundError) as excinfo:
            catalog.create_beverage("Lager", 5.0, 999)
        assert excinfo.value.entity == "category"
        assert catalog.list_beverages() == []

    def test_create_duplicate_name(self, catalog, beer):
        catalog.create_beverage("Lager", 5.0, beer)
        with pytest.raises(DuplicateNameError):
            catalog.create_beverage("Lager", 4.5, beer)

    def test_update(self, catalog, beer):
        wine = catalog.create_category("Wine", 2)
        beverage_id = catalog.create_beverage("Lager", 5.0, beer)

        catalog.update_beverage(beverage_id, " Rosé ", 12.0, wine)

        updated = catalog.get_beverage(beverage_id)
        assert updated.name == "Rosé"
        assert updated.alcohol_content == 12.0
        assert updated.category_id == wine
        assert updated.category_name == "Wine"

    def test_update_unknown_beverage(self, catalog, beer):
        with pytest.raises(NotFoundError) as excinfo:
            catalog.update_beverage(999, "Lager", 5.0, beer)
        assert excinfo.value.entity == "beverage"

    def test_update_unknown_category(self, catalog, beer):
        beverage_id = catalog.create_beverage("Lager", 5.0, beer)
        with pytest.raises(NotFoundError) as excinfo:
            catalog.update_beverage(beverage_id, "Lager", 5.0, 999)
        assert excinfo.value.entity == "category"
        assert catalog.get_beverage(beverage_id).category_id == beer

    def test_update_rejects_blank_name(self, catalog, beer):
        beverage_id = catalog.create_beverage("Lager", 5.0, beer)
        with pytest.raises(InvalidInputError):
            catalog.update_beverage(beverage_id, "", 5.0, beer)

    def test_update_to_taken_name(self, catalog, beer):
        catalog.create_beverage("Lager", 5.0, beer)
        stout = catalog.create_beverage("Stout", 6.0, beer)
        with pytest.raises(DuplicateNameError):
            catalog.update_beverage(stout, "Lager", 6.0, beer)

    def test_update_keeping_own_name(self, catalog, beer):
        beverage_id = catalog.create_beverage("Lager", 5.0, beer)
        catalog.update_beverage(beverage_id, "Lager", 4.8, beer)
        assert catalog.get_beverage(beverage_id).alcohol_content == 4.8

    def test_delete_unused(self, catalog, beer):
        beverage_id = catalog.create_beverage("Lager", 5.0, beer)
        catalog.delete_beverage(beverage_id)
        assert catalog.list_beverages() == []

    def test_delete_unknown(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.delete_beverage(999)

    def test_delete_in_use_reports_post_count(self, db, catalog, beer):
        lager = catalog.create_beverage("Lager", 5.0, beer)
        stout = catalog.create_beverage("Stout", 6.0, beer)
        posts = PostManager(db)
        posts.create_post("2024-01-05", None, [(lager, 500)])
        posts.create_post("2024-01-06", None, [(lager, 350), (stout, 330)])
        posts.create_post("2024-01-07", None, [(stout, 330)])

        with pytest.raises(InUseError) as excinfo:
            catalog.delete_beverage(lager)
        assert excinfo.value.count == 2
        assert catalog.get_beverage(lager).name == "Lager"

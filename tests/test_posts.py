"""Tests for posts and their beverage associations."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from nomilog.catalog import CatalogManager
from nomilog.posts import PostManager
from nomilog.storage.db import DatabaseManager
from nomilog.storage.errors import (
    ConstraintViolationError,
    InvalidInputError,
    NotFoundError,
    StorageError,
)
from nomilog.storage.models import BeverageAmountInput


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(tmp_path / "posts.db")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def posts(db):
    return PostManager(db)


@pytest.fixture
def drinks(db):
    """Create a few beverages; returns name -> id."""
    catalog = CatalogManager(db)
    beer = catalog.list_categories()[0].id
    return {
        "lager": catalog.create_beverage("Lager", 5.0, beer),
        "stout": catalog.create_beverage("Stout", 6.0, beer),
        "tea": catalog.create_beverage("Barley tea", None, beer),
    }


def association_set(post):
    return {(b.beverage_id, b.amount) for b in post.beverages}


def count_rows(db, table):
    return db.query(f"SELECT COUNT(*) FROM {table}")[0][0]


class TestCreatePost:
    def test_associations_match_input(self, posts, drinks):
        given = [(drinks["lager"], 500.0), (drinks["tea"], 200.0), (drinks["stout"], 330.0)]
        post_id = posts.create_post("2024-01-05", "after work", given)

        [post] = posts.list_posts()
        assert post.id == post_id
        assert post.date == date(2024, 1, 5)
        assert post.comment == "after work"
        assert association_set(post) == set(given)

    def test_association_carries_beverage_details(self, posts, drinks):
        posts.create_post("2024-01-05", None, [{"beverage_id": drinks["lager"], "amount": 500}])

        [entry] = posts.list_posts()[0].beverages
        assert entry.beverage_name == "Lager"
        assert entry.alcohol_content == 5.0
        assert entry.amount == 500.0

    def test_accepts_date_objects_and_inputs(self, posts, drinks):
        post_id = posts.create_post(
            datetime(2024, 3, 1, 23, 30),
            "",
            [BeverageAmountInput(drinks["stout"], 330)],
        )
        post = posts.get_post(post_id)
        assert post.date == date(2024, 3, 1)
        assert post.comment is None

    def test_post_without_beverages(self, posts):
        post_id = posts.create_post(date(2024, 1, 1))
        assert posts.get_post(post_id).beverages == []

    def test_unknown_beverage_rolls_back(self, db, posts, drinks):
        with pytest.raises(ConstraintViolationError):
            posts.create_post("2024-01-05", None, [(drinks["lager"], 500), (999, 100)])

        assert posts.list_posts() == []
        assert count_rows(db, "post_beverages") == 0

    def test_duplicate_beverage_rolls_back(self, db, posts, drinks):
        with pytest.raises(StorageError):
            posts.create_post("2024-01-05", None, [(drinks["lager"], 500), (drinks["lager"], 300)])

        assert count_rows(db, "posts") == 0
        assert count_rows(db, "post_beverages") == 0

    @pytest.mark.parametrize("bad_date", ["2024-13-01", "yesterday", "", None, 20240105])
    def test_rejects_malformed_date(self, posts, bad_date):
        with pytest.raises(InvalidInputError):
            posts.create_post(bad_date)

    @pytest.mark.parametrize("amount", [0, -10, "lots", float("nan"), float("inf"), True])
    def test_rejects_bad_amount(self, db, posts, drinks, amount):
        with pytest.raises(InvalidInputError):
            posts.create_post("2024-01-05", None, [(drinks["lager"], amount)])
        assert count_rows(db, "posts") == 0

    @pytest.mark.parametrize("offset", [0.9, 0.5])
    def test_rejects_fractional_beverage_id(self, db, posts, drinks, offset):
        with pytest.raises(InvalidInputError):
            posts.create_post(
                "2024-01-05", None, [{"beverage_id": drinks["lager"] + offset, "amount": 100}]
            )
        assert count_rows(db, "posts") == 0
        assert count_rows(db, "post_beverages") == 0

    @pytest.mark.parametrize("beverage_id", [True, "x", None, float("nan")])
    def test_rejects_non_integer_beverage_id(self, db, posts, drinks, beverage_id):
        with pytest.raises(InvalidInputError):
            posts.create_post("2024-01-05", None, [(beverage_id, 100)])
        assert count_rows(db, "posts") == 0

    def test_accepts_integral_beverage_id(self, posts, drinks):
        post_id = posts.create_post("2024-01-05", None, [(float(drinks["lager"]), 100)])
        assert [b.beverage_id for b in posts.get_post(post_id).beverages] == [drinks["lager"]]

    def test_rejects_unreadable_entry(self, posts, drinks):
        with pytest.raises(InvalidInputError):
            posts.create_post("2024-01-05", None, [{"beverage_id": drinks["lager"]}])
        with pytest.raises(InvalidInputError):
            posts.create_post("2024-01-05", None, [42])


class TestListPosts:
    def test_ordered_by_date_then_creation(self, posts):
        first = posts.create_post("2024-01-05", "first")
        older = posts.create_post("2024-01-03", "older day")
        second = posts.create_post("2024-01-05", "second")
        newest = posts.create_post("2024-02-01", "newest day")

        assert [p.id for p in posts.list_posts()] == [newest, second, first, older]

    def test_alcohol_content_is_read_at_query_time(self, db, posts, drinks):
        posts.create_post("2024-01-05", None, [(drinks["lager"], 500)])
        CatalogManager(db).update_beverage(drinks["lager"], "Lager", 4.0, 1)

        [entry] = posts.list_posts()[0].beverages
        assert entry.alcohol_content == 4.0

    def test_post_intake(self, posts, drinks):
        post_id = posts.create_post(
            "2024-01-05", None, [(drinks["lager"], 500), (drinks["tea"], 200)]
        )
        assert posts.get_post(post_id).intake == pytest.approx(20.0)

    def test_get_unknown_post(self, posts):
        with pytest.raises(NotFoundError):
            posts.get_post(1)

    def test_to_dict(self, posts, drinks):
        post_id = posts.create_post("2024-01-05", "x", [(drinks["lager"], 500)])
        data = posts.get_post(post_id).to_dict()
        assert data["date"] == "2024-01-05"
        assert data["beverages"] == [
            {
                "beverage_id": drinks["lager"],
                "beverage_name": "Lager",
                "amount": 500.0,
                "alcohol_content": 5.0,
            }
        ]


class TestUpdatePost:
    def test_replaces_association_set(self, db, posts, drinks):
        post_id = posts.create_post(
            "2024-01-05", "before", [(drinks["lager"], 500), (drinks["stout"], 330)]
        )

        posts.update_post(post_id, "2024-01-06", "after", [(drinks["stout"], 660), (drinks["tea"], 100)])

        post = posts.get_post(post_id)
        assert post.date == date(2024, 1, 6)
        assert post.comment == "after"
        assert association_set(post) == {(drinks["stout"], 660.0), (drinks["tea"], 100.0)}
        residual = db.query(
            "SELECT COUNT(*) FROM post_beverages WHERE post_id = ? AND beverage_id = ?",
            (post_id, drinks["lager"]),
        )[0][0]
        assert residual == 0

    def test_empty_set_clears_associations(self, db, posts, drinks):
        post_id = posts.create_post("2024-01-05", None, [(drinks["lager"], 500)])
        posts.update_post(post_id, "2024-01-05", None, [])
        assert posts.get_post(post_id).beverages == []
        assert count_rows(db, "post_beverages") == 0

    def test_failure_restores_previous_state(self, posts, drinks):
        post_id = posts.create_post("2024-01-05", "keep me", [(drinks["lager"], 500)])

        with pytest.raises(ConstraintViolationError):
            posts.update_post(post_id, "2024-02-01", "changed", [(drinks["stout"], 330), (999, 10)])

        post = posts.get_post(post_id)
        assert post.date == date(2024, 1, 5)
        assert post.comment == "keep me"
        assert association_set(post) == {(drinks["lager"], 500.0)}

    def test_unknown_post(self, db, posts, drinks):
        with pytest.raises(NotFoundError):
            posts.update_post(999, "2024-01-05", None, [(drinks["lager"], 500)])
        assert count_rows(db, "post_beverages") == 0


class TestDeletePost:
    def test_cascades_associations(self, db, posts, drinks):
        keep = posts.create_post("2024-01-04", None, [(drinks["stout"], 330)])
        gone = posts.create_post("2024-01-05", None, [(drinks["lager"], 500), (drinks["stout"], 330)])

        posts.delete_post(gone)

        assert [p.id for p in posts.list_posts()] == [keep]
        assert count_rows(db, "post_beverages") == 1

    def test_unblocks_beverage_deletion(self, db, posts, drinks):
        post_id = posts.create_post("2024-01-05", None, [(drinks["lager"], 500)])
        posts.delete_post(post_id)
        CatalogManager(db).delete_beverage(drinks["lager"])

    def test_unknown_post(self, posts):
        with pytest.raises(NotFoundError):
            posts.delete_post(999)

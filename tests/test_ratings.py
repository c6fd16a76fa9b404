"""Tests for recipe ratings."""

import pytest

from larder.db import Database
from larder.errors import ValidationError
from larder.ratings import RatingService


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "larder.db")


@pytest.fixture
def ratings(db):
    return RatingService(db)


def test_rate_recipe(ratings):
    rating = ratings.rate("alice", "lasagna", 4, comment="  Rich  ")
    assert rating.rating == 4
    assert rating.comment == "Rich"
    assert rating.created_at


def test_rating_again_replaces(db, ratings):
    """One rating per user per recipe; the latest wins."""
    ratings.rate("alice", "lasagna", 2, comment="Too salty")
    updated = ratings.rate("alice", "lasagna", 5, comment="Fixed it")

    assert updated.rating == 5
    assert updated.comment == "Fixed it"
    with db.transaction(readonly=True) as tx:
        count = tx.conn.execute("SELECT COUNT(*) AS n FROM recipe_ratings").fetchone()["n"]
    assert count == 1


def test_photo_survives_rerating(ratings):
    ratings.rate("alice", "lasagna", 3, photo_url="http://img/l.jpg")
    assert ratings.rate("alice", "lasagna", 4).photo_url == "http://img/l.jpg"


@pytest.mark.parametrize("bad", [0, 6, -1, 3.5, "4", True])
def test_rating_out_of_range(ratings, bad):
    with pytest.raises(ValidationError):
        ratings.rate("alice", "lasagna", bad)


def test_blank_recipe_id(ratings):
    with pytest.raises(ValidationError):
        ratings.rate("alice", " ", 3)


def test_summary(ratings):
    ratings.rate("alice", "lasagna", 5)
    ratings.rate("bob", "lasagna", 2)
    ratings.rate("bob", "soup", 1)

    summary = ratings.summary("lasagna", user_id="bob")
    assert {r.user_id for r in summary.ratings} == {"alice", "bob"}
    assert summary.average == 3.5
    assert summary.user_rating.rating == 2
    assert ratings.summary("lasagna").user_rating is None


def test_summary_without_ratings(ratings):
    summary = ratings.summary("unrated", user_id="alice")
    assert summary.ratings == []
    assert summary.average is None
    assert summary.user_rating is None

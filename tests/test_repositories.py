"""
Tests for the MongoDB repositories against mocked collections.
"""
from unittest.mock import MagicMock

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from shine_wardrobe.core.models import User
from shine_wardrobe.db.mongo import Database, PersistenceError
from shine_wardrobe.db.products import ProductRepository, build_filters, gender_filter
from shine_wardrobe.db.recommendations import RecommendationRepository
from shine_wardrobe.db.users import DuplicateEmailError, UserRepository


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def database(collection):
    db = MagicMock(spec=Database)
    db.collection.return_value = collection
    return db


class TestProductFilters:
    """Query documents built for the catalog."""

    def test_gender_includes_unisex(self):
        assert gender_filter("male") == {"gender": {"$in": ["male", "unisex"]}}

    def test_unisex_matches_everything(self):
        assert gender_filter("unisex") == {}

    def test_price_range_and_flags(self):
        query = build_filters(gender="female", is_luxury=True, min_price=100, max_price=500)
        assert query == {
            "gender": {"$in": ["female", "unisex"]},
            "is_available": True,
            "is_luxury": True,
            "price": {"$gte": 100, "$lte": 500},
        }


class TestProductRepository:

    def test_search_escapes_regex(self, database, collection):
        collection.find.return_value.sort.return_value.limit.return_value = []

        ProductRepository(database).search("camisa (p)")

        query = collection.find.call_args[0][0]
        pattern = query["$or"][0]["name"]
        assert r"\(p\)" in pattern["$regex"]
        assert pattern["$options"] == "i"

    def test_find_all_pagination(self, database, collection):
        collection.count_documents.return_value = 45
        collection.find.return_value.sort.return_value.skip.return_value.limit.return_value = []

        result = ProductRepository(database).find_all(page=3, limit=20)

        assert result["total_pages"] == 3
        collection.find.return_value.sort.return_value.skip.assert_called_once_with(40)

    def test_errors_are_wrapped(self, database, collection):
        collection.find.side_effect = ServerSelectionTimeoutError("down")
        with pytest.raises(PersistenceError) as exc:
            ProductRepository(database).find_by_gender_and_availability("male")
        assert exc.value.status_code == 500

    def test_mark_as_unavailable_skips_empty(self, database, collection):
        assert ProductRepository(database).mark_as_unavailable([]) == 0
        collection.update_many.assert_not_called()


class TestUserRepository:

    def test_duplicate_key_maps_to_conflict(self, database, collection):
        collection.insert_one.side_effect = DuplicateKeyError("dup")
        user = User(email="ana@example.com", name="Ana", password_hash="x")

        with pytest.raises(DuplicateEmailError) as exc:
            UserRepository(database).create(user)
        assert exc.value.status_code == 409

    def test_update_ignores_unknown_fields(self, database, collection):
        collection.find_one.return_value = None

        UserRepository(database).update("u1", {"city": "Recife", "password_hash": "hack"})

        changes = collection.update_one.call_args[0][1]["$set"]
        assert changes["city"] == "Recife"
        assert "password_hash" not in changes
        assert "updated_at" in changes


class TestRecommendationRepository:

    def test_find_by_user_filters_active(self, database, collection):
        collection.count_documents.return_value = 0
        cursor = collection.find.return_value.sort.return_value.skip.return_value.limit.return_value
        cursor.__iter__.return_value = iter([])

        RecommendationRepository(database).find_by_user_id("u1", active=False)

        assert collection.find.call_args[0][0] == {"user_id": "u1", "is_active": False}
        assert collection.find.call_args[0][1] == {"_id": 0}

    def test_popular_products_pipeline(self, database, collection):
        collection.aggregate.return_value = [
            {"_id": "p1", "name": "Camisa", "category": "shirt", "count": 3, "avg_price": 49.999},
        ]

        rows = RecommendationRepository(database).get_popular_products("male", limit=5)

        pipeline = collection.aggregate.call_args[0][0]
        assert pipeline[0] == {"$match": {"gender": "male"}}
        assert pipeline[-1] == {"$limit": 5}
        assert rows == [{"product_id": "p1", "name": "Camisa", "category": "shirt", "count": 3, "avg_price": 50.0}]

    def test_find_by_city_newest_first(self, database, collection):
        cursor = collection.find.return_value.sort.return_value.limit.return_value
        cursor.__iter__.return_value = iter([])

        RecommendationRepository(database).find_by_city("Recife", limit=3)

        assert collection.find.call_args[0][0] == {"city": "Recife"}
        collection.find.return_value.sort.assert_called_once_with("created_at", -1)
        collection.find.return_value.sort.return_value.limit.assert_called_once_with(3)

"""
Recommendation Store (v1.0.0)
Persisted outfit recommendations in MongoDB.
"""
import math
import logging
from typing import Optional, List, Dict, Any

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from shine_wardrobe.core.models import Recommendation, utc_now
from shine_wardrobe.db.mongo import Database, PersistenceError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"is_active", "ai_recommendation"}


class RecommendationRepository:
    """CRUD and aggregates for recommendations."""

    def __init__(self, db: Database):
        self.collection = db.collection("recommendations")

    def create(self, recommendation: Recommendation) -> Recommendation:
        try:
            self.collection.insert_one(recommendation.to_dict())
            logger.info(f"Recommendation inserted: {recommendation.id}")
            return recommendation
        except PyMongoError as e:
            logger.error(f"Failed to insert recommendation: {e}")
            raise PersistenceError("Failed to save recommendation") from e

    def find_by_id(self, recommendation_id: str) -> Optional[Recommendation]:
        try:
            doc = self.collection.find_one({"id": recommendation_id}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Failed to get recommendation {recommendation_id}: {e}")
            raise PersistenceError("Failed to load recommendation") from e
        return Recommendation.from_dict(doc) if doc else None

    def find_by_user_id(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        active: Optional[bool] = None,
    ) -> dict:
        """
        Paginated recommendations for a user, newest first.

        Returns:
            Dict with recommendations, total, page, limit, total_pages
        """
        query: Dict[str, Any] = {"user_id": user_id}
        if active is not None:
            query["is_active"] = active

        try:
            total = self.collection.count_documents(query)
            cursor = (
                self.collection.find(query, {"_id": 0})
                .sort("created_at", DESCENDING)
                .skip((page - 1) * limit)
                .limit(limit)
            )
            recommendations = [Recommendation.from_dict(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error(f"Failed to list recommendations for {user_id}: {e}")
            raise PersistenceError("Failed to list recommendations") from e

        return {
            "recommendations": recommendations,
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def find_by_city(self, city: str, limit: int = 10) -> List[Recommendation]:
        """Most recent recommendations generated for a city."""
        try:
            cursor = (
                self.collection.find({"city": city}, {"_id": 0})
                .sort("created_at", DESCENDING)
                .limit(limit)
            )
            return [Recommendation.from_dict(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error(f"Failed to list recommendations for city {city}: {e}")
            raise PersistenceError("Failed to list recommendations") from e

    def update(self, recommendation_id: str, updates: Dict[str, Any]) -> Optional[Recommendation]:
        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        changes["updated_at"] = utc_now()

        try:
            self.collection.update_one({"id": recommendation_id}, {"$set": changes})
        except PyMongoError as e:
            logger.error(f"Failed to update recommendation {recommendation_id}: {e}")
            raise PersistenceError("Failed to update recommendation") from e

        return self.find_by_id(recommendation_id)

    def delete(self, recommendation_id: str) -> bool:
        try:
            result = self.collection.delete_one({"id": recommendation_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete recommendation {recommendation_id}: {e}")
            raise PersistenceError("Failed to delete recommendation") from e
        return result.deleted_count > 0

    def delete_by_user(self, user_id: str) -> int:
        try:
            result = self.collection.delete_many({"user_id": user_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete recommendations for {user_id}: {e}")
            raise PersistenceError("Failed to delete recommendations") from e
        return result.deleted_count

    def get_popular_products(self, gender: Optional[str] = None, limit: int = 20) -> List[dict]:
        """
        Most recommended products across all stored outfits.

        Returns:
            List of {product_id, name, category, count, avg_price}
        """
        pipeline: List[Dict[str, Any]] = []
        if gender:
            pipeline.append({"$match": {"gender": gender}})

        pipeline.extend([
            {"$project": {"items": {"$concatArrays": ["$outfit.economic", "$outfit.luxury"]}}},
            {"$unwind": "$items"},
            {"$group": {
                "_id": "$items.product_id",
                "name": {"$first": "$items.name"},
                "category": {"$first": "$items.category"},
                "count": {"$sum": 1},
                "avg_price": {"$avg": "$items.price"},
            }},
            {"$sort": {"count": -1}},
            {"$limit": limit},
        ])

        try:
            rows = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.error(f"Failed to aggregate popular products: {e}")
            raise PersistenceError("Failed to load popular products") from e

        return [
            {
                "product_id": row["_id"],
                "name": row["name"],
                "category": row["category"],
                "count": row["count"],
                "avg_price": round(row["avg_price"], 2),
            }
            for row in rows
        ]

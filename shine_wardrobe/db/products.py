"""
Product Catalog Module (v1.0.0)
Read access to scraped products plus the scraper's write interface.
"""
import re
import math
import logging
from typing import Optional, List, Dict, Any

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from shine_wardrobe.core.models import Product, utc_now
from shine_wardrobe.db.mongo import Database, PersistenceError

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 50


def gender_filter(gender: Optional[str]) -> Dict[str, Any]:
    """
    Catalog gender filter.

    "male"/"female" also match unisex products; "unisex" matches everything.
    """
    if not gender or gender == "unisex":
        return {}
    return {"gender": {"$in": [gender, "unisex"]}}


def build_filters(
    gender: Optional[str] = None,
    category: Optional[str] = None,
    is_luxury: Optional[bool] = None,
    is_economic: Optional[bool] = None,
    is_available: Optional[bool] = True,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = gender_filter(gender)

    if is_available is not None:
        query["is_available"] = is_available
    if category:
        query["category"] = category
    if is_luxury is not None:
        query["is_luxury"] = is_luxury
    if is_economic is not None:
        query["is_economic"] = is_economic

    price: Dict[str, float] = {}
    if min_price is not None:
        price["$gte"] = min_price
    if max_price is not None:
        price["$lte"] = max_price
    if price:
        query["price"] = price

    return query


class ProductRepository:
    """Catalog queries."""

    def __init__(self, db: Database):
        self.collection = db.collection("products")

    def _find(self, query: Dict[str, Any], skip: int = 0, limit: int = 0) -> List[Product]:
        cursor = self.collection.find(query, {"_id": 0}).sort("scraped_at", DESCENDING)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [Product.from_dict(doc) for doc in cursor]

    def find_by_gender_and_availability(self, gender: str, is_available: bool = True) -> List[Product]:
        """
        Candidate products for a recommendation.

        Args:
            gender: Catalog gender ("male", "female", "unisex")
            is_available: Availability flag

        Returns:
            Products, newest scrape first
        """
        query = gender_filter(gender)
        query["is_available"] = is_available

        try:
            return self._find(query)
        except PyMongoError as e:
            logger.error(f"Failed to load candidates for {gender}: {e}")
            raise PersistenceError("Failed to load products") from e

    def find_by_id(self, product_id: str) -> Optional[Product]:
        try:
            doc = self.collection.find_one({"id": product_id}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Failed to load product {product_id}: {e}")
            raise PersistenceError("Failed to load product") from e
        return Product.from_dict(doc) if doc else None

    def find_all(self, page: int = 1, limit: int = 20, **filters) -> dict:
        """
        Paginated product listing.

        Returns:
            Dict with products, total, page, limit, total_pages
        """
        query = build_filters(**filters)

        try:
            total = self.collection.count_documents(query)
            products = self._find(query, skip=(page - 1) * limit, limit=limit)
        except PyMongoError as e:
            logger.error(f"Failed to list products: {e}")
            raise PersistenceError("Failed to list products") from e

        return {
            "products": products,
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def search(self, text: str, **filters) -> List[Product]:
        """Case-insensitive search on name, brand and description."""
        pattern = {"$regex": re.escape(text), "$options": "i"}
        query = build_filters(**filters)
        query["$or"] = [
            {"name": pattern},
            {"brand": pattern},
            {"description": pattern},
        ]

        try:
            return self._find(query, limit=SEARCH_LIMIT)
        except PyMongoError as e:
            logger.error(f"Product search failed for '{text}': {e}")
            raise PersistenceError("Product search failed") from e

    def get_categories(self) -> List[str]:
        try:
            return sorted(self.collection.distinct("category", {"is_available": True}))
        except PyMongoError as e:
            logger.error(f"Failed to load categories: {e}")
            raise PersistenceError("Failed to load categories") from e

    def get_brands(self) -> List[str]:
        try:
            brands = self.collection.distinct("brand", {"is_available": True, "brand": {"$ne": None}})
        except PyMongoError as e:
            logger.error(f"Failed to load brands: {e}")
            raise PersistenceError("Failed to load brands") from e
        return sorted(b for b in brands if b)

    # ==================== SCRAPER INTERFACE ====================

    def create(self, product: Product) -> Product:
        try:
            self.collection.insert_one(product.to_dict())
            return product
        except PyMongoError as e:
            logger.error(f"Failed to insert product {product.id}: {e}")
            raise PersistenceError("Failed to create product") from e

    def mark_as_unavailable(self, product_ids: List[str]) -> int:
        """Flag products that disappeared from their source."""
        if not product_ids:
            return 0

        try:
            result = self.collection.update_many(
                {"id": {"$in": product_ids}},
                {"$set": {"is_available": False, "updated_at": utc_now()}},
            )
        except PyMongoError as e:
            logger.error(f"Failed to mark products unavailable: {e}")
            raise PersistenceError("Failed to update products") from e

        logger.info(f"Marked {result.modified_count} products unavailable")
        return result.modified_count

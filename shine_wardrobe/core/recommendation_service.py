"""
Recommendation Service (v1.0.0)
Weather lookup, candidate selection, outfit generation and persistence.
"""
import time
import logging
from typing import Optional, Dict, Any, List

from shine_wardrobe.core.models import Recommendation
from shine_wardrobe.core.outfit_recommender import OutfitRecommender
from shine_wardrobe.core.validation import (
    ValidationError,
    validate_city,
    validate_gender,
    validate_recommendation_input,
)
from shine_wardrobe.db.products import ProductRepository
from shine_wardrobe.db.recommendations import RecommendationRepository
from shine_wardrobe.services.weather import WeatherService
from shine_wardrobe.observability import log_request, record_recommendation

logger = logging.getLogger(__name__)

# User gender -> catalog gender
CATALOG_GENDER = {"male": "male", "female": "female", "other": "unisex"}
LEGACY_GENDER = "other"


class NotFoundError(Exception):
    """Unknown recommendation, or one owned by another user."""
    def __init__(self, message: str = "Recommendation not found", status_code: int = 404):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NoCandidatesError(Exception):
    """No available products for the requested gender."""
    def __init__(self, message: str = "No products available for recommendation", status_code: int = 422):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RecommendationService:
    """Coordinates weather, catalog, recommender and store."""

    def __init__(
        self,
        recommendations: RecommendationRepository,
        products: ProductRepository,
        weather_service: WeatherService,
        recommender: OutfitRecommender,
    ):
        self.recommendations = recommendations
        self.products = products
        self.weather_service = weather_service
        self.recommender = recommender

    async def generate_recommendation(
        self,
        user_id: str,
        city: Optional[str],
        gender: Optional[str],
    ) -> Recommendation:
        """
        Generate and persist a recommendation.

        Args:
            user_id: Owner
            city: City for the weather lookup
            gender: "male", "female" or "other"

        Returns:
            The stored Recommendation

        Raises:
            ValidationError: Missing city or invalid gender
            NoCandidatesError: Catalog has nothing available for the gender
            PersistenceError: Store failure
        """
        city, gender = validate_recommendation_input(city, gender)
        start_time = time.time()
        provider = self.recommender.provider

        try:
            weather = await self.weather_service.get_current_weather(city)

            catalog_gender = CATALOG_GENDER[gender]
            candidates = self.products.find_by_gender_and_availability(catalog_gender, True)
            if not candidates:
                logger.warning(f"No candidates for gender={catalog_gender}")
                raise NoCandidatesError()

            result = await self.recommender.recommend(weather, city, gender, candidates)

            recommendation = Recommendation(
                user_id=user_id,
                city=city,
                gender=gender,
                weather=weather,
                outfit=result.outfit,
                ai_recommendation=result.reasoning,
                source=result.source,
                is_active=True,
            )
            self.recommendations.create(recommendation)

        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            record_recommendation(provider, "", latency_ms, error=True)
            log_request(None, user_id, provider, "", latency_ms, "fail", error=str(e))
            raise

        latency_ms = int((time.time() - start_time) * 1000)
        record_recommendation(provider, result.source, latency_ms)
        log_request(recommendation.id, user_id, provider, result.source, latency_ms, "success")

        logger.info(
            f"[{recommendation.id}] Recommendation for {city} ({gender}) "
            f"via {result.source} in {latency_ms}ms"
        )
        return recommendation

    def get_user_recommendations(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        return self.recommendations.find_by_user_id(user_id, page, limit, active)

    def get_recommendation_by_id(self, recommendation_id: str, user_id: str) -> Optional[Recommendation]:
        """Fetch a recommendation; unknown and not-owned both return None."""
        recommendation = self.recommendations.find_by_id(recommendation_id)
        if not recommendation or recommendation.user_id != user_id:
            return None
        return recommendation

    def update_recommendation(
        self,
        recommendation_id: str,
        user_id: str,
        is_active: Optional[bool] = None,
    ) -> Optional[Recommendation]:
        existing = self.get_recommendation_by_id(recommendation_id, user_id)
        if not existing:
            return None
        if is_active is None:
            return existing
        return self.recommendations.update(recommendation_id, {"is_active": is_active})

    def delete_recommendation(self, recommendation_id: str, user_id: str) -> bool:
        if not self.get_recommendation_by_id(recommendation_id, user_id):
            return False
        return self.recommendations.delete(recommendation_id)

    async def regenerate_recommendation(self, recommendation_id: str, user_id: str) -> Optional[Recommendation]:
        """
        Generate a fresh recommendation for the same city and gender.

        The original record is kept; a new one is created.
        """
        existing = self.get_recommendation_by_id(recommendation_id, user_id)
        if not existing:
            return None

        gender = existing.gender or LEGACY_GENDER
        logger.info(f"[{recommendation_id}] Regenerating for {existing.city} ({gender})")
        return await self.generate_recommendation(user_id, existing.city, gender)

    def get_recommendations_by_city(self, city: Optional[str], limit: int = 10) -> List[Recommendation]:
        city = validate_city(city)
        if limit < 1:
            raise ValidationError("limit must be >= 1")
        return self.recommendations.find_by_city(city, limit)

    def get_popular_products(self, gender: Optional[str] = None, limit: int = 20) -> List[dict]:
        if gender is not None:
            gender = validate_gender(gender)
        if limit < 1:
            raise ValidationError("limit must be >= 1")
        return self.recommendations.get_popular_products(gender, limit)

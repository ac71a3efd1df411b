"""
Service Container (v1.0.0)
Builds the database handle, repositories and services once at startup.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from shine_wardrobe.config import Settings, ActiveLLMConfig, get_llm_config, validate_provider_config
from shine_wardrobe.core.auth import AuthService
from shine_wardrobe.core.outfit_recommender import OutfitRecommender
from shine_wardrobe.core.recommendation_service import RecommendationService
from shine_wardrobe.db import (
    Database,
    UserRepository,
    ProductRepository,
    RecommendationRepository,
)
from shine_wardrobe.llm import LLMClient
from shine_wardrobe.services.weather import WeatherService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request handler needs."""
    settings: Settings
    llm_config: ActiveLLMConfig
    database: Optional[Database]
    users: UserRepository
    products: ProductRepository
    recommendations: RecommendationRepository
    weather_service: WeatherService
    recommender: OutfitRecommender
    auth_service: AuthService
    recommendation_service: RecommendationService


def build_container(
    settings: Settings,
    database: Optional[Database] = None,
    llm_config: Optional[ActiveLLMConfig] = None,
) -> ServiceContainer:
    """
    Wire the application.

    Args:
        settings: Application settings
        database: Existing handle (a new one is created from settings if None)
        llm_config: LLM configuration (read from env if None)

    Returns:
        ServiceContainer
    """
    database = database or Database(settings.mongo_uri, settings.mongo_db_name)
    llm_config = llm_config or get_llm_config()

    for warning in validate_provider_config(llm_config):
        logger.warning(warning)

    users = UserRepository(database)
    products = ProductRepository(database)
    recommendations = RecommendationRepository(database)

    weather_service = WeatherService(
        api_key=settings.weather_api_key,
        base_url=settings.weather_base_url,
        timeout=settings.weather_timeout,
    )
    recommender = OutfitRecommender(LLMClient(llm_config), pool_limit=llm_config.pool_limit)

    return ServiceContainer(
        settings=settings,
        llm_config=llm_config,
        database=database,
        users=users,
        products=products,
        recommendations=recommendations,
        weather_service=weather_service,
        recommender=recommender,
        auth_service=AuthService(users, recommendations, settings),
        recommendation_service=RecommendationService(
            recommendations, products, weather_service, recommender
        ),
    )

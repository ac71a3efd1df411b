# Core module
from shine_wardrobe.core.models import (
    WeatherSnapshot,
    Product,
    OutfitItem,
    Outfit,
    Recommendation,
    User,
)
from shine_wardrobe.core.validation import (
    ValidationError,
    validate_registration,
    validate_recommendation_input,
    validate_pagination,
)
from shine_wardrobe.core.outfit_recommender import (
    OutfitRecommender,
    OutfitResult,
    fallback_recommendation,
    parse_ai_response,
    build_prompt,
)

"""
API Routes for ShineWardrobe v1.0.0
Auth, profile, catalog, weather and outfit recommendations.
"""
import logging
from typing import Optional, List, Literal

from fastapi import APIRouter, HTTPException, Depends, Request, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shine_wardrobe.app.container import ServiceContainer
from shine_wardrobe.config import get_provider_status
from shine_wardrobe.core.auth import AuthError, get_current_user
from shine_wardrobe.core.models import User
from shine_wardrobe.core.recommendation_service import NotFoundError, NoCandidatesError
from shine_wardrobe.core.validation import ValidationError, validate_pagination
from shine_wardrobe.db.mongo import PersistenceError
from shine_wardrobe.services.weather import MAX_FORECAST_DAYS, get_weather_recommendation
from shine_wardrobe.observability import get_metrics, is_logging_enabled

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "1.0.0"

# Errors that already carry an HTTP status
DOMAIN_ERRORS = (ValidationError, AuthError, NotFoundError, NoCandidatesError, PersistenceError)

CatalogGender = Literal["male", "female", "unisex"]


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def _internal_error(container: ServiceContainer, e: Exception) -> HTTPException:
    """500 with the error text only in development."""
    detail = str(e) if container.settings.is_development() else "Internal server error"
    return HTTPException(status_code=500, detail=detail)


# ==================== REQUEST MODELS ====================

class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str
    city: Optional[str] = None
    gender: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class PriceRange(BaseModel):
    min: float
    max: float


class Preferences(BaseModel):
    style: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    brands: Optional[List[str]] = None
    price_range: Optional[PriceRange] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None
    gender: Optional[str] = None
    preferences: Optional[Preferences] = None


class RecommendationCreate(BaseModel):
    city: Optional[str] = Field(None, description="Defaults to the profile city")
    gender: Optional[str] = Field(None, description="Defaults to the profile gender")


class RecommendationUpdate(BaseModel):
    is_active: Optional[bool] = None


# ==================== PUBLIC ENDPOINTS ====================

@router.get("/health")
async def health_check(container: ServiceContainer = Depends(get_container)):
    """Health check with observability info."""
    metrics = get_metrics()
    mongo_status = container.database.health_check() if container.database else {"status": "disconnected"}

    return {
        "status": "ok",
        "version": VERSION,
        "environment": container.settings.environment,
        "llm": get_provider_status(container.llm_config),
        "mongo": mongo_status,
        "weather": {"enabled": container.weather_service.is_configured()},
        "observability": {
            "logging_enabled": is_logging_enabled(),
            "total_recommendations": metrics["total_recommendations"],
            "ai_ratio": metrics["ai_ratio"],
            "errors": metrics["errors"],
        },
    }


@router.get("/metrics")
async def get_metrics_endpoint():
    """Get detailed metrics for monitoring."""
    return JSONResponse(content=get_metrics())


# ==================== AUTH ====================

@router.post("/api/auth/register")
async def register(body: RegisterRequest, container: ServiceContainer = Depends(get_container)):
    """
    Create an account and return an access token.
    """
    try:
        user = container.auth_service.register(
            email=body.email,
            password=body.password,
            name=body.name,
            city=body.city,
            gender=body.gender,
        )
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return JSONResponse(content=container.auth_service.token_response(user), status_code=201)


@router.post("/api/auth/login")
async def login(body: LoginRequest, container: ServiceContainer = Depends(get_container)):
    try:
        user = container.auth_service.login(body.email, body.password)
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return JSONResponse(content=container.auth_service.token_response(user))


@router.post("/api/auth/refresh")
async def refresh(
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """Issue a new token for a still-valid one."""
    return JSONResponse(content={
        "access_token": container.auth_service.refresh_token(user),
        "token_type": "bearer",
    })


@router.get("/api/auth/me")
async def me(user: User = Depends(get_current_user)):
    return JSONResponse(content=user.to_public_dict())


# ==================== PROFILE ====================

@router.get("/api/users/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return JSONResponse(content=user.to_public_dict())


@router.put("/api/users/profile")
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """
    Update name, city, gender or preferences.

    Fields left out of the body are unchanged.
    """
    preferences = body.preferences.model_dump(exclude_none=True) if body.preferences else None

    try:
        updated = container.auth_service.update_profile(
            user.id,
            name=body.name,
            city=body.city,
            gender=body.gender,
            preferences=preferences,
        )
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")

    return JSONResponse(content=updated.to_public_dict())


@router.delete("/api/users/profile")
async def delete_profile(
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """Delete the account and its recommendations."""
    try:
        deleted = container.auth_service.delete_account(user.id)
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")

    return JSONResponse(content={"message": "Account deleted"})


# ==================== PRODUCTS ====================

@router.get("/api/products")
async def list_products(
    page: int = Query(1, description="Page number (1-based)"),
    limit: int = Query(20, description="Page size (max 100)"),
    gender: Optional[CatalogGender] = Query(None),
    category: Optional[str] = Query(None),
    is_luxury: Optional[bool] = Query(None),
    is_economic: Optional[bool] = Query(None),
    is_available: bool = Query(True),
    container: ServiceContainer = Depends(get_container),
):
    """
    Paginated catalog listing with optional filters.
    """
    try:
        validate_pagination(page, limit)
        result = container.products.find_all(
            page=page,
            limit=limit,
            gender=gender,
            category=category,
            is_luxury=is_luxury,
            is_economic=is_economic,
            is_available=is_available,
        )
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    result["products"] = [p.to_dict() for p in result["products"]]
    return JSONResponse(content=result)


@router.get("/api/products/search")
async def search_products(
    q: str = Query(..., min_length=1, description="Text to match in name, brand or description"),
    gender: Optional[CatalogGender] = Query(None),
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    is_luxury: Optional[bool] = Query(None),
    is_economic: Optional[bool] = Query(None),
    container: ServiceContainer = Depends(get_container),
):
    try:
        products = container.products.search(
            q,
            gender=gender,
            category=category,
            min_price=min_price,
            max_price=max_price,
            is_luxury=is_luxury,
            is_economic=is_economic,
        )
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return JSONResponse(content={
        "products": [p.to_dict() for p in products],
        "total": len(products),
    })


@router.get("/api/products/categories")
async def list_categories(container: ServiceContainer = Depends(get_container)):
    try:
        return JSONResponse(content={"categories": container.products.get_categories()})
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/api/products/brands")
async def list_brands(container: ServiceContainer = Depends(get_container)):
    try:
        return JSONResponse(content={"brands": container.products.get_brands()})
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/api/products/popular")
async def popular_products(
    gender: Optional[str] = Query(None, description="male, female or other"),
    limit: int = Query(20, ge=1, le=100),
    container: ServiceContainer = Depends(get_container),
):
    """Products that appear most often in stored recommendations."""
    try:
        products = container.recommendation_service.get_popular_products(gender, limit)
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return JSONResponse(content={"products": products})


@router.get("/api/products/{product_id}")
async def get_product(product_id: str, container: ServiceContainer = Depends(get_container)):
    try:
        product = container.products.find_by_id(product_id)
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    return JSONResponse(content=product.to_dict())


# ==================== WEATHER ====================

@router.get("/api/weather/current/{city}")
async def current_weather(city: str, container: ServiceContainer = Depends(get_container)):
    """
    Current weather for a city plus clothing advice.

    Falls back to mock data when the provider is unavailable.
    """
    weather = await container.weather_service.get_current_weather(city)

    return JSONResponse(content={
        "city": city,
        "weather": weather.to_dict(),
        "recommendation": get_weather_recommendation(weather),
    })


@router.get("/api/weather/forecast/{city}")
async def weather_forecast(
    city: str,
    days: int = Query(MAX_FORECAST_DAYS, ge=1, le=MAX_FORECAST_DAYS, description="Days (1-5)"),
    container: ServiceContainer = Depends(get_container),
):
    try:
        forecast = await container.weather_service.get_forecast(city, days)
    except Exception as e:
        logger.error(f"Forecast failed for {city}: {e}")
        raise _internal_error(container, e)

    return JSONResponse(content={
        "city": city,
        "days": days,
        "forecast": [w.to_dict() for w in forecast],
    })


# ==================== RECOMMENDATIONS ====================

@router.post("/api/recommendations")
async def create_recommendation(
    body: Optional[RecommendationCreate] = None,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """
    Generate an outfit recommendation for the current weather.

    City and gender default to the user's profile.
    """
    body = body or RecommendationCreate()
    city = body.city or user.city
    gender = body.gender or user.gender

    try:
        recommendation = await container.recommendation_service.generate_recommendation(
            user.id, city, gender
        )
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Recommendation generation failed: {e}")
        raise _internal_error(container, e)

    return JSONResponse(content=recommendation.to_dict(), status_code=201)


@router.get("/api/recommendations")
async def list_recommendations(
    page: int = Query(1, description="Page number (1-based)"),
    limit: int = Query(10, description="Page size (max 100)"),
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """
    Get the user's recommendations, newest first.
    """
    try:
        validate_pagination(page, limit)
        result = container.recommendation_service.get_user_recommendations(user.id, page, limit, active)
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    result["recommendations"] = [r.to_dict() for r in result["recommendations"]]
    return JSONResponse(content=result)


@router.get("/api/recommendations/{recommendation_id}")
async def get_recommendation(
    recommendation_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    try:
        recommendation = container.recommendation_service.get_recommendation_by_id(recommendation_id, user.id)
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    return JSONResponse(content=recommendation.to_dict())


@router.put("/api/recommendations/{recommendation_id}")
async def update_recommendation(
    recommendation_id: str,
    body: RecommendationUpdate,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """Archive or re-activate a recommendation."""
    try:
        recommendation = container.recommendation_service.update_recommendation(
            recommendation_id, user.id, body.is_active
        )
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    return JSONResponse(content=recommendation.to_dict())


@router.delete("/api/recommendations/{recommendation_id}")
async def delete_recommendation(
    recommendation_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    try:
        deleted = container.recommendation_service.delete_recommendation(recommendation_id, user.id)
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if not deleted:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    return JSONResponse(content={"message": "Recommendation deleted"})


@router.post("/api/recommendations/{recommendation_id}/regenerate")
async def regenerate_recommendation(
    recommendation_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """
    Generate a new recommendation for the same city and gender.

    The original recommendation is kept.
    """
    try:
        recommendation = await container.recommendation_service.regenerate_recommendation(
            recommendation_id, user.id
        )
    except DOMAIN_ERRORS as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Recommendation regeneration failed: {e}")
        raise _internal_error(container, e)

    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    return JSONResponse(content=recommendation.to_dict(), status_code=201)

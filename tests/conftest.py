"""
Shared fixtures: in-memory repositories, a scripted LLM client and a
FastAPI test client wired with them.
"""
import json

import pytest
from typing import Optional, List, Dict, Any

from fastapi.testclient import TestClient

from shine_wardrobe.app.container import ServiceContainer
from shine_wardrobe.app.main import create_app
from shine_wardrobe.config import Settings
from shine_wardrobe.config.llm_config import ActiveLLMConfig, LLMProvider
from shine_wardrobe.core.auth import AuthService
from shine_wardrobe.core.models import Product, Recommendation, User, WeatherSnapshot, utc_now
from shine_wardrobe.core.outfit_recommender import OutfitRecommender
from shine_wardrobe.core.recommendation_service import RecommendationService
from shine_wardrobe.db.users import DuplicateEmailError, UPDATABLE_FIELDS as USER_FIELDS
from shine_wardrobe.db.recommendations import UPDATABLE_FIELDS as RECOMMENDATION_FIELDS
from shine_wardrobe.observability import reset_metrics
from shine_wardrobe.services.weather import WeatherService


# ==================== IN-MEMORY REPOSITORIES ====================

class InMemoryUserRepository:
    def __init__(self):
        self.users: Dict[str, User] = {}

    def create(self, user: User) -> User:
        if self.find_by_email(user.email):
            raise DuplicateEmailError(user.email)
        self.users[user.id] = user
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def update(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None
        for key, value in updates.items():
            if key in USER_FIELDS:
                setattr(user, key, value)
        user.updated_at = utc_now()
        return user

    def delete(self, user_id: str) -> bool:
        return self.users.pop(user_id, None) is not None


class InMemoryProductRepository:
    def __init__(self, products: Optional[List[Product]] = None):
        self.products: List[Product] = list(products or [])

    def find_by_gender_and_availability(self, gender: str, is_available: bool = True) -> List[Product]:
        return [
            p for p in self.products
            if p.is_available == is_available
            and (gender == "unisex" or p.gender in (gender, "unisex"))
        ]

    def find_by_id(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_all(self, page: int = 1, limit: int = 20, **filters) -> dict:
        matching = [p for p in self.products if p.is_available]
        start = (page - 1) * limit
        return {
            "products": matching[start:start + limit],
            "total": len(matching),
            "page": page,
            "limit": limit,
            "total_pages": -(-len(matching) // limit),
        }

    def search(self, text: str, **filters) -> List[Product]:
        text = text.lower()
        return [p for p in self.products if text in p.name.lower()]

    def get_categories(self) -> List[str]:
        return sorted({p.category for p in self.products})

    def get_brands(self) -> List[str]:
        return sorted({p.brand for p in self.products if p.brand})


class InMemoryRecommendationRepository:
    """Stores JSON text, so every read goes through a serialization round trip."""

    def __init__(self):
        self.documents: Dict[str, str] = {}

    def _load(self, recommendation_id: str) -> Optional[Recommendation]:
        document = self.documents.get(recommendation_id)
        return Recommendation.from_dict(json.loads(document)) if document else None

    def _save(self, recommendation: Recommendation) -> None:
        self.documents[recommendation.id] = json.dumps(recommendation.to_dict())

    @property
    def recommendations(self) -> Dict[str, Recommendation]:
        return {rid: self._load(rid) for rid in self.documents}

    def create(self, recommendation: Recommendation) -> Recommendation:
        self._save(recommendation)
        return recommendation

    def find_by_id(self, recommendation_id: str) -> Optional[Recommendation]:
        return self._load(recommendation_id)

    def find_by_user_id(self, user_id: str, page: int = 1, limit: int = 10, active: Optional[bool] = None) -> dict:
        # Insertion order reversed: newest first
        matching = [
            r for r in reversed(list(self.recommendations.values()))
            if r.user_id == user_id and (active is None or r.is_active == active)
        ]
        start = (page - 1) * limit
        return {
            "recommendations": matching[start:start + limit],
            "total": len(matching),
            "page": page,
            "limit": limit,
            "total_pages": -(-len(matching) // limit),
        }

    def find_by_city(self, city: str, limit: int = 10) -> List[Recommendation]:
        return [r for r in reversed(list(self.recommendations.values())) if r.city == city][:limit]

    def update(self, recommendation_id: str, updates: Dict[str, Any]) -> Optional[Recommendation]:
        recommendation = self._load(recommendation_id)
        if recommendation is None:
            return None
        for key, value in updates.items():
            if key in RECOMMENDATION_FIELDS:
                setattr(recommendation, key, value)
        recommendation.updated_at = utc_now()
        self._save(recommendation)
        return recommendation

    def delete(self, recommendation_id: str) -> bool:
        return self.documents.pop(recommendation_id, None) is not None

    def delete_by_user(self, user_id: str) -> int:
        owned = [r.id for r in self.recommendations.values() if r.user_id == user_id]
        for rid in owned:
            del self.documents[rid]
        return len(owned)

    def get_popular_products(self, gender: Optional[str] = None, limit: int = 20) -> List[dict]:
        counts: Dict[str, dict] = {}
        for r in self.recommendations.values():
            if gender and r.gender != gender:
                continue
            for item in r.outfit.economic + r.outfit.luxury:
                row = counts.setdefault(item.product_id, {
                    "product_id": item.product_id,
                    "name": item.name,
                    "category": item.category,
                    "count": 0,
                    "prices": [],
                })
                row["count"] += 1
                row["prices"].append(item.price)
        rows = sorted(counts.values(), key=lambda row: -row["count"])[:limit]
        return [
            {
                "product_id": row["product_id"],
                "name": row["name"],
                "category": row["category"],
                "count": row["count"],
                "avg_price": round(sum(row["prices"]) / len(row["prices"]), 2),
            }
            for row in rows
        ]


# ==================== LLM STUB ====================

class ScriptedLLMClient:
    """Returns a fixed reply, or raises a fixed error."""

    provider = "stub"

    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


# ==================== FIXTURES ====================

def make_product(
    product_id: str,
    category: str,
    price: float,
    tier: str = "economic",
    gender: str = "unisex",
    is_available: bool = True,
    **kwargs,
) -> Product:
    return Product(
        id=product_id,
        name=kwargs.pop("name", f"{category.title()} {product_id}"),
        category=category,
        price=price,
        product_url=f"https://shop.example.com/{product_id}",
        image_url=f"https://img.example.com/{product_id}.jpg",
        gender=gender,
        is_economic=(tier == "economic"),
        is_luxury=(tier == "luxury"),
        is_available=is_available,
        source="test",
        **kwargs,
    )


@pytest.fixture
def catalog() -> List[Product]:
    return [
        make_product("e1", "shirt", 49.9),
        make_product("e2", "pants", 89.9, gender="male"),
        make_product("e3", "shorts", 39.9, gender="female"),
        make_product("e4", "jacket", 129.9),
        make_product("l1", "jacket", 899.0, tier="luxury"),
        make_product("l2", "shirt", 459.0, tier="luxury", gender="male"),
        make_product("l3", "pants", 699.0, tier="luxury"),
        make_product("l4", "shorts", 399.0, tier="luxury", gender="female"),
        make_product("x1", "shirt", 59.9, is_available=False),
    ]


@pytest.fixture
def hot_weather() -> WeatherSnapshot:
    return WeatherSnapshot(temperature=30, condition="Clear", humidity=50, wind_speed=10, description="céu limpo")


@pytest.fixture
def cold_rainy_weather() -> WeatherSnapshot:
    return WeatherSnapshot(temperature=10, condition="Rain", humidity=85, wind_speed=25, description="chuva")


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="development", jwt_secret="test-secret", bcrypt_rounds=4)


@pytest.fixture
def llm_client() -> ScriptedLLMClient:
    # Default reply is not JSON, so recommendations use the fallback
    return ScriptedLLMClient(reply="sem resposta")


@pytest.fixture(autouse=True)
def clean_metrics(monkeypatch):
    monkeypatch.setenv("SHINE_LOGGING_ENABLED", "false")
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def container(settings, catalog, llm_client) -> ServiceContainer:
    users = InMemoryUserRepository()
    products = InMemoryProductRepository(catalog)
    recommendations = InMemoryRecommendationRepository()
    weather_service = WeatherService(api_key=None)
    recommender = OutfitRecommender(llm_client)

    return ServiceContainer(
        settings=settings,
        llm_config=ActiveLLMConfig(
            provider=LLMProvider.OLLAMA,
            model="llama3.2:3b",
            max_tokens=1000,
            temperature=0.7,
            timeout=30.0,
            pool_limit=10,
            base_url="http://localhost:11434",
        ),
        database=None,
        users=users,
        products=products,
        recommendations=recommendations,
        weather_service=weather_service,
        recommender=recommender,
        auth_service=AuthService(users, recommendations, settings),
        recommendation_service=RecommendationService(recommendations, products, weather_service, recommender),
    )


@pytest.fixture
def client(container) -> TestClient:
    app = create_app(container=container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    """Register a user and return bearer headers."""
    response = client.post("/api/auth/register", json={
        "email": "Ana@Example.com",
        "password": "secret123",
        "name": "Ana",
        "city": "São Paulo",
        "gender": "female",
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}

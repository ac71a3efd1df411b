"""
Domain Models (v1.0.0)
Weather snapshots, catalog products, outfits, recommendations and users.

Documents are stored in MongoDB and returned over the API with the same
snake_case keys produced by ``to_dict``.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

USER_GENDERS = ("male", "female", "other")
PRODUCT_GENDERS = ("male", "female", "unisex")


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ==================== WEATHER ====================

@dataclass(frozen=True)
class WeatherSnapshot:
    """Normalized current weather, embedded in recommendations."""
    temperature: int  # °C
    condition: str  # e.g. "Clear", "Rain", "Clouds"
    humidity: int  # %
    wind_speed: int  # km/h
    description: str
    icon: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "temperature": self.temperature,
            "condition": self.condition,
            "humidity": self.humidity,
            "wind_speed": self.wind_speed,
            "description": self.description,
        }
        if self.icon is not None:
            data["icon"] = self.icon
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherSnapshot":
        return cls(
            temperature=int(data["temperature"]),
            condition=data["condition"],
            humidity=int(data["humidity"]),
            wind_speed=int(data["wind_speed"]),
            description=data.get("description", ""),
            icon=data.get("icon"),
        )

    def is_rainy(self) -> bool:
        return "rain" in self.condition.lower()


# ==================== CATALOG ====================

@dataclass
class Product:
    """A scraped catalog product."""
    id: str
    name: str
    category: str
    price: float
    product_url: str
    gender: str = "unisex"
    is_luxury: bool = False
    is_economic: bool = False
    is_available: bool = True
    source: str = ""
    currency: str = "BRL"
    brand: Optional[str] = None
    subcategory: Optional[str] = None
    original_price: Optional[float] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    sizes: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    season: Optional[str] = None
    weather: List[str] = field(default_factory=list)
    scraped_at: str = field(default_factory=utc_now)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "subcategory": self.subcategory,
            "price": self.price,
            "original_price": self.original_price,
            "currency": self.currency,
            "image_url": self.image_url,
            "product_url": self.product_url,
            "description": self.description,
            "sizes": list(self.sizes),
            "colors": list(self.colors),
            "is_luxury": self.is_luxury,
            "is_economic": self.is_economic,
            "is_available": self.is_available,
            "source": self.source,
            "gender": self.gender,
            "season": self.season,
            "weather": list(self.weather),
            "scraped_at": self.scraped_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        original_price = data.get("original_price")
        return cls(
            id=data["id"],
            name=data["name"],
            category=data["category"],
            price=float(data["price"]),
            product_url=data["product_url"],
            gender=data.get("gender", "unisex"),
            is_luxury=bool(data.get("is_luxury", False)),
            is_economic=bool(data.get("is_economic", False)),
            is_available=bool(data.get("is_available", True)),
            source=data.get("source", ""),
            currency=data.get("currency", "BRL"),
            brand=data.get("brand"),
            subcategory=data.get("subcategory"),
            original_price=float(original_price) if original_price is not None else None,
            image_url=data.get("image_url"),
            description=data.get("description"),
            sizes=list(data.get("sizes") or []),
            colors=list(data.get("colors") or []),
            season=data.get("season"),
            weather=list(data.get("weather") or []),
            scraped_at=data.get("scraped_at") or utc_now(),
            created_at=data.get("created_at") or utc_now(),
            updated_at=data.get("updated_at") or utc_now(),
        )


# ==================== OUTFIT ====================

@dataclass
class OutfitItem:
    """Product projection captured by value at recommendation time."""
    product_id: str
    category: str
    name: str
    price: float
    product_url: str
    image_url: Optional[str] = None

    @classmethod
    def from_product(cls, product: Product) -> "OutfitItem":
        return cls(
            product_id=product.id,
            category=product.category,
            name=product.name,
            price=product.price,
            product_url=product.product_url,
            image_url=product.image_url,
        )

    def to_dict(self) -> dict:
        data = {
            "product_id": self.product_id,
            "category": self.category,
            "name": self.name,
            "price": self.price,
            "product_url": self.product_url,
        }
        if self.image_url is not None:
            data["image_url"] = self.image_url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutfitItem":
        return cls(
            product_id=data["product_id"],
            category=data["category"],
            name=data["name"],
            price=float(data["price"]),
            product_url=data.get("product_url", "#"),
            image_url=data.get("image_url"),
        )


@dataclass
class Outfit:
    """Economic and luxury selections, at most two items each."""
    economic: List[OutfitItem] = field(default_factory=list)
    luxury: List[OutfitItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "economic": [item.to_dict() for item in self.economic],
            "luxury": [item.to_dict() for item in self.luxury],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Outfit":
        return cls(
            economic=[OutfitItem.from_dict(item) for item in data.get("economic", [])],
            luxury=[OutfitItem.from_dict(item) for item in data.get("luxury", [])],
        )


# ==================== RECOMMENDATION ====================

@dataclass
class Recommendation:
    """A persisted outfit recommendation for a user and city."""
    user_id: str
    city: str
    weather: WeatherSnapshot
    outfit: Outfit
    gender: Optional[str] = None
    ai_recommendation: Optional[str] = None
    source: str = "ai"  # "ai" or "fallback"
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "city": self.city,
            "gender": self.gender,
            "weather": self.weather.to_dict(),
            "outfit": self.outfit.to_dict(),
            "ai_recommendation": self.ai_recommendation,
            "source": self.source,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            city=data["city"],
            gender=data.get("gender"),
            weather=WeatherSnapshot.from_dict(data["weather"]),
            outfit=Outfit.from_dict(data["outfit"]),
            ai_recommendation=data.get("ai_recommendation"),
            source=data.get("source", "ai"),
            is_active=bool(data.get("is_active", True)),
            created_at=data.get("created_at") or utc_now(),
            updated_at=data.get("updated_at") or utc_now(),
        )


# ==================== USER ====================

@dataclass
class User:
    """Registered account."""
    email: str
    name: str
    password_hash: str
    city: Optional[str] = None
    gender: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        """Full document, including the password hash (storage only)."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "password_hash": self.password_hash,
            "city": self.city,
            "gender": self.gender,
            "preferences": self.preferences,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_public_dict(self) -> dict:
        """API representation without credentials."""
        data = self.to_dict()
        data.pop("password_hash")
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            email=data["email"],
            name=data["name"],
            password_hash=data["password_hash"],
            city=data.get("city"),
            gender=data.get("gender"),
            preferences=data.get("preferences"),
            created_at=data.get("created_at") or utc_now(),
            updated_at=data.get("updated_at") or utc_now(),
        )

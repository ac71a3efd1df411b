"""
Outfit Recommender (v1.2.0)
Weather-aware outfit selection from the product catalog.

Primary strategy asks the configured LLM to pick 2 economic and 2 luxury
products. Any failure (provider error, timeout, missing or invalid JSON)
falls back to a deterministic temperature/condition rule engine, so
``recommend`` always returns a usable outfit.
"""
import re
import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Dict, Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shine_wardrobe.core.models import Product, OutfitItem, Outfit, WeatherSnapshot

logger = logging.getLogger(__name__)

ITEMS_PER_TIER = 2
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
MISSING_PRODUCT_URL = "#"
DEFAULT_AI_REASONING = "Recomendação baseada no clima atual"

# ==================== FALLBACK RULES ====================

HOT_THRESHOLD = 25
COLD_THRESHOLD = 15

PREFERRED_CATEGORIES = {
    "hot": ("shirt", "shorts"),
    "cold": ("jacket", "pants"),
    "mild": (),
}

FALLBACK_REASONING_PREFIX = "Recomendação baseada nas condições climáticas: "
FALLBACK_REASONING = {
    "hot": "tempo quente, roupas leves e respiráveis",
    "cold": "tempo frio, roupas quentes e confortáveis",
    "mild": "temperatura amena, roupas versáteis",
}
RAIN_CLAUSE = " com proteção contra chuva"


# ==================== AI RESPONSE SCHEMA ====================

class AIOutfitItem(BaseModel):
    """One product picked by the model."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    category: str
    name: str
    price: float
    reasoning: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # Models sometimes emit numeric ids
        if isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value


class AIOutfitResponse(BaseModel):
    """Expected JSON object in the model's reply."""
    economic: List[AIOutfitItem]
    luxury: List[AIOutfitItem]
    general_reasoning: Optional[str] = None


@dataclass
class OutfitResult:
    """Outfit plus the rationale and which strategy produced it."""
    outfit: Outfit
    reasoning: str
    source: str  # "ai" or "fallback"


# ==================== POOLS & PROMPT ====================

def partition_pools(products: List[Product]) -> Tuple[List[Product], List[Product]]:
    """Split candidates into (economic, luxury) pools; they may overlap."""
    economic = [p for p in products if p.is_economic]
    luxury = [p for p in products if p.is_luxury]
    return economic, luxury


def _format_pool(pool: List[Product], limit: Optional[int]) -> str:
    listed = pool[:limit] if limit is not None else pool
    if not listed:
        return "- nenhum produto disponível"
    return "\n".join(
        f"- {p.category}: {p.name} - R$ {p.price:.2f} (ID: {p.id})"
        for p in listed
    )


def build_prompt(
    weather: WeatherSnapshot,
    city: str,
    gender: str,
    economic_pool: List[Product],
    luxury_pool: List[Product],
    pool_limit: Optional[int] = None,
) -> str:
    """
    Build the outfit prompt.

    Args:
        weather: Current weather snapshot
        city: City name
        gender: User gender
        economic_pool: Economic tier candidates
        luxury_pool: Luxury tier candidates
        pool_limit: Max products listed per tier (None = all)

    Returns:
        Prompt text requesting strict JSON output
    """
    return f"""Você é um consultor de moda especializado. Com base no clima atual, recomende um outfit completo.

DADOS DO CLIMA:
- Cidade: {city}
- Temperatura: {weather.temperature}°C
- Condição: {weather.condition}
- Descrição: {weather.description}
- Umidade: {weather.humidity}%
- Vento: {weather.wind_speed} km/h

PERFIL DO USUÁRIO:
- Gênero: {gender}

PRODUTOS DISPONÍVEIS ECONÔMICOS:
{_format_pool(economic_pool, pool_limit)}

PRODUTOS DISPONÍVEIS LUXO:
{_format_pool(luxury_pool, pool_limit)}

TAREFA:
1. Analise o clima e sugira {ITEMS_PER_TIER} opções ECONÔMICAS e {ITEMS_PER_TIER} opções LUXUOSAS
2. Considere a adequação ao clima, conforto e estilo
3. Use apenas IDs da lista acima
4. Retorne APENAS um JSON válido no formato:

{{
  "economic": [
    {{"productId": "id_do_produto", "category": "categoria", "name": "nome_do_produto", "price": 0.0, "reasoning": "motivo_da_escolha"}}
  ],
  "luxury": [
    {{"productId": "id_do_produto", "category": "categoria", "name": "nome_do_produto", "price": 0.0, "reasoning": "motivo_da_escolha"}}
  ],
  "general_reasoning": "explicação_geral_da_escolha_baseada_no_clima"
}}"""


# ==================== RESPONSE PARSING ====================

def _join_with_pool(items: List[AIOutfitItem], pool: List[Product]) -> List[OutfitItem]:
    by_id: Dict[str, Product] = {p.id: p for p in pool}
    joined = []

    for item in items[:ITEMS_PER_TIER]:
        product = by_id.get(item.product_id)
        if product is None:
            logger.warning(f"AI referenced unknown product id: {item.product_id}")

        joined.append(OutfitItem(
            product_id=item.product_id,
            category=item.category,
            name=item.name,
            price=item.price,
            image_url=product.image_url if product else None,
            product_url=product.product_url if product else MISSING_PRODUCT_URL,
        ))

    return joined


def parse_ai_response(
    text: str,
    economic_pool: List[Product],
    luxury_pool: List[Product],
) -> Tuple[Outfit, str]:
    """
    Parse the model reply into an Outfit.

    Image and product URLs always come from the catalog, never from the model.

    Raises:
        ValueError: no JSON object found or JSON is invalid
        pydantic.ValidationError: JSON does not match the schema
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise ValueError("No JSON object found in AI response")

    data: Any = json.loads(match.group(0))
    parsed = AIOutfitResponse.model_validate(data)

    outfit = Outfit(
        economic=_join_with_pool(parsed.economic, economic_pool),
        luxury=_join_with_pool(parsed.luxury, luxury_pool),
    )
    return outfit, parsed.general_reasoning or DEFAULT_AI_REASONING


# ==================== FALLBACK RULE ENGINE ====================

def classify_temperature(weather: WeatherSnapshot) -> str:
    """Return "hot", "cold" or "mild"."""
    if weather.temperature > HOT_THRESHOLD:
        return "hot"
    if weather.temperature < COLD_THRESHOLD:
        return "cold"
    return "mild"


def _select_from_pool(pool: List[Product], preferred: Tuple[str, ...]) -> List[Product]:
    selection = [p for p in pool if p.category in preferred][:ITEMS_PER_TIER]
    if not selection:
        selection = pool[:ITEMS_PER_TIER]
    return selection


def fallback_recommendation(
    economic_pool: List[Product],
    luxury_pool: List[Product],
    weather: WeatherSnapshot,
) -> OutfitResult:
    """
    Deterministic selection based on temperature and rain.

    Keeps catalog order, so the same catalog always yields the same outfit.
    """
    climate = classify_temperature(weather)
    preferred = PREFERRED_CATEGORIES[climate]

    outfit = Outfit(
        economic=[OutfitItem.from_product(p) for p in _select_from_pool(economic_pool, preferred)],
        luxury=[OutfitItem.from_product(p) for p in _select_from_pool(luxury_pool, preferred)],
    )

    reasoning = FALLBACK_REASONING_PREFIX + FALLBACK_REASONING[climate]
    if weather.is_rainy():
        reasoning += RAIN_CLAUSE

    return OutfitResult(outfit=outfit, reasoning=reasoning, source="fallback")


# ==================== RECOMMENDER ====================

class OutfitRecommender:
    """
    Generates outfits with an LLM backend and the shared fallback.

    The backend is any object exposing ``async generate_text(prompt) -> str``
    and a ``provider`` name; hosted and self-hosted clients are interchangeable.
    """

    def __init__(self, llm_client, pool_limit: Optional[int] = None):
        self.llm_client = llm_client
        self.pool_limit = pool_limit

    @property
    def provider(self) -> str:
        return getattr(self.llm_client, "provider", "unknown")

    async def recommend(
        self,
        weather: WeatherSnapshot,
        city: str,
        gender: str,
        candidates: List[Product],
    ) -> OutfitResult:
        """
        Recommend an outfit. Never raises for provider or parsing failures.

        Args:
            weather: Current weather
            city: City name
            gender: User gender ("male", "female", "other")
            candidates: Available catalog products

        Returns:
            OutfitResult with outfit, reasoning and source
        """
        economic_pool, luxury_pool = partition_pools(candidates)
        prompt = build_prompt(weather, city, gender, economic_pool, luxury_pool, self.pool_limit)

        try:
            logger.info(f"Calling {self.provider} for outfit recommendation ({len(candidates)} candidates)...")
            text = await self.llm_client.generate_text(prompt)
            outfit, reasoning = parse_ai_response(text, economic_pool, luxury_pool)

            logger.info(
                f"✓ AI outfit: {len(outfit.economic)} economic, {len(outfit.luxury)} luxury"
            )
            return OutfitResult(outfit=outfit, reasoning=reasoning, source="ai")

        except Exception as e:
            logger.warning(f"AI recommendation failed ({type(e).__name__}: {e}), using fallback")
            return fallback_recommendation(economic_pool, luxury_pool, weather)

"""
Weather Service (v1.2.0)
OpenWeatherMap integration with mock fallback for outfit recommendations.
"""
import random
import logging
from typing import Optional, List, Dict

import httpx

from shine_wardrobe.core.models import WeatherSnapshot

logger = logging.getLogger(__name__)

# Configuration
OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_UNITS = "metric"  # Celsius
DEFAULT_LANG = "pt_br"
FORECAST_STEP = 8  # 3-hour feed, one entry per ~24h
MAX_FORECAST_DAYS = 5

MOCK_WEATHER: Dict[str, WeatherSnapshot] = {
    "são paulo": WeatherSnapshot(
        temperature=22, condition="Clouds", humidity=65, wind_speed=15,
        description="nublado", icon="02d",
    ),
    "rio de janeiro": WeatherSnapshot(
        temperature=28, condition="Clear", humidity=70, wind_speed=12,
        description="céu limpo", icon="01d",
    ),
    "brasília": WeatherSnapshot(
        temperature=25, condition="Clear", humidity=45, wind_speed=8,
        description="céu limpo", icon="01d",
    ),
}

DEFAULT_MOCK_WEATHER = WeatherSnapshot(
    temperature=24, condition="Clear", humidity=60, wind_speed=10,
    description="tempo bom", icon="01d",
)


def get_mock_weather(city: str) -> WeatherSnapshot:
    """Static weather for known cities, generic default otherwise."""
    return MOCK_WEATHER.get(city.strip().lower(), DEFAULT_MOCK_WEATHER)


def parse_weather_entry(data: dict) -> WeatherSnapshot:
    """
    Normalize an OpenWeatherMap entry.

    Raises:
        KeyError, IndexError, TypeError, ValueError: on malformed payloads
    """
    main = data["main"]
    weather = data["weather"][0]
    return WeatherSnapshot(
        temperature=int(round(main["temp"])),
        condition=weather["main"],
        humidity=int(main["humidity"]),
        wind_speed=int(round(data["wind"]["speed"] * 3.6)),  # m/s -> km/h
        description=weather.get("description", ""),
        icon=weather.get("icon"),
    )


class WeatherService:
    """Current weather, forecast and clothing advice for a city."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = OPENWEATHER_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._rng = rng or random.Random()

        if not self.api_key:
            logger.warning("WEATHER_API_KEY not set - using mock weather data")

    def is_configured(self) -> bool:
        """Check if weather provider is configured."""
        return bool(self.api_key)

    async def _fetch(self, endpoint: str, city: str) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(
                f"{self.base_url}/{endpoint}",
                params={
                    "q": city,
                    "appid": self.api_key,
                    "units": DEFAULT_UNITS,
                    "lang": DEFAULT_LANG,
                },
            )
            response.raise_for_status()
            return response.json()

    async def get_current_weather(self, city: str) -> WeatherSnapshot:
        """
        Fetch current weather for a city.

        Never raises: provider errors degrade to mock data.

        Args:
            city: City name (e.g., "São Paulo")

        Returns:
            WeatherSnapshot
        """
        if not self.api_key:
            return get_mock_weather(city)

        try:
            data = await self._fetch("weather", city)
            snapshot = parse_weather_entry(data)
            logger.info(f"Weather: {city} - {snapshot.temperature}°C, {snapshot.condition}")
            return snapshot

        except httpx.TimeoutException:
            logger.warning(f"Weather API timeout for {city}")
        except httpx.HTTPStatusError as e:
            logger.warning(f"Weather API returned {e.response.status_code} for {city}")
        except Exception as e:
            logger.error(f"Weather API error for {city}: {e}")

        return get_mock_weather(city)

    async def get_forecast(self, city: str, days: int = MAX_FORECAST_DAYS) -> List[WeatherSnapshot]:
        """
        Daily forecast, one snapshot per day.

        Args:
            city: City name
            days: Number of days (1-5)

        Returns:
            List of WeatherSnapshot
        """
        if not self.api_key:
            return self._mock_forecast(city, days)

        try:
            data = await self._fetch("forecast", city)
            entries = data["list"][::FORECAST_STEP][:days]
            return [parse_weather_entry(entry) for entry in entries]

        except httpx.TimeoutException:
            logger.warning(f"Forecast API timeout for {city}")
        except Exception as e:
            logger.error(f"Forecast API error for {city}: {e}")

        return self._mock_forecast(city, days)

    def _mock_forecast(self, city: str, days: int) -> List[WeatherSnapshot]:
        base = get_mock_weather(city)
        forecast = []

        for _ in range(days):
            humidity = base.humidity + self._rng.randint(-10, 10)
            forecast.append(WeatherSnapshot(
                temperature=base.temperature + self._rng.randint(-3, 3),
                condition=base.condition,
                humidity=max(30, min(90, humidity)),
                wind_speed=base.wind_speed,
                description=base.description,
                icon=base.icon,
            ))

        return forecast


def get_weather_recommendation(weather: WeatherSnapshot) -> Dict[str, List[str]]:
    """
    Clothing advice from a fixed decision table.

    Returns:
        Dict with clothing, accessories and tips lists
    """
    clothing: List[str] = []
    accessories: List[str] = []
    tips: List[str] = []

    if weather.temperature > 30:
        clothing.extend(["roupas leves", "tecidos respiráveis", "cores claras"])
        accessories.extend(["chapéu", "óculos de sol"])
        tips.extend(["Use protetor solar", "Mantenha-se hidratado"])
    elif weather.temperature > 20:
        clothing.extend(["roupas frescas", "camadas removíveis"])
        accessories.append("óculos de sol")
    elif weather.temperature > 10:
        clothing.extend(["casaco leve", "calça comprida"])
    else:
        clothing.extend(["casaco pesado", "roupas quentes", "camadas"])
        accessories.extend(["gorro", "luvas", "cachecol"])

    if weather.is_rainy():
        accessories.extend(["guarda-chuva", "capa de chuva"])
        tips.append("Use sapatos impermeáveis")

    if weather.wind_speed > 20:
        tips.append("Evite roupas muito soltas pelo vento")

    if weather.humidity > 80:
        tips.append("Prefira tecidos que não retenham suor")

    return {
        "clothing": clothing,
        "accessories": accessories,
        "tips": tips,
    }

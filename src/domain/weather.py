"""
Bad-weather classification
==========================

A snapshot is "bad" when any one of these holds (checked in this order):

* precipitation  > 2.5 mm/h
* weather code in a severe set (thunderstorm, snow, freezing rain)
* visibility     < 1000 m
* wind speed     > 40 km/h

Missing data is never bad: a ride is not penalised because the weather
provider was unreachable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

HEAVY_RAIN_MM_PER_HOUR = 2.5
POOR_VISIBILITY_M = 1000.0
STRONG_WIND_KMH = 40.0

DEFAULT_VISIBILITY_M = 10_000.0

THUNDERSTORM_CODES = frozenset({95, 96, 99})
SNOW_CODES = frozenset({71, 73, 75, 77, 85, 86})
FREEZING_RAIN_CODES = frozenset({66, 67})
SEVERE_WEATHER_CODES = THUNDERSTORM_CODES | SNOW_CODES | FREEZING_RAIN_CODES

UNKNOWN_CONDITION = "Unknown"

# WMO weather interpretation codes, as reported by Open-Meteo
WEATHER_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature: Optional[float] = None
    precipitation_mm_per_hour: float = 0.0
    weather_code: Optional[int] = None
    wind_speed_kmh: float = 0.0
    visibility_meters: float = DEFAULT_VISIBILITY_M


@dataclass(frozen=True)
class WeatherAssessment:
    condition: str
    is_bad: bool
    raw: Optional[WeatherSnapshot] = None


@dataclass(frozen=True)
class RideWeatherResult:
    start_weather: WeatherAssessment
    dest_weather: WeatherAssessment

    @property
    def has_bad_weather(self) -> bool:
        return self.start_weather.is_bad or self.dest_weather.is_bad

    @property
    def weather_surcharge_applicable(self) -> bool:
        # The surcharge decision is the bad-weather flag, nothing more.
        return self.has_bad_weather


UNKNOWN_ASSESSMENT = WeatherAssessment(condition=UNKNOWN_CONDITION, is_bad=False)

UNKNOWN_RIDE_WEATHER = RideWeatherResult(
    start_weather=UNKNOWN_ASSESSMENT, dest_weather=UNKNOWN_ASSESSMENT
)


def describe_weather_code(code: Optional[int]) -> str:
    if code is None:
        return UNKNOWN_CONDITION
    return WEATHER_DESCRIPTIONS.get(code, UNKNOWN_CONDITION)


def is_bad_weather(snapshot: Optional[WeatherSnapshot]) -> bool:
    if snapshot is None:
        return False
    if snapshot.precipitation_mm_per_hour > HEAVY_RAIN_MM_PER_HOUR:
        return True
    if snapshot.weather_code in SEVERE_WEATHER_CODES:
        return True
    if snapshot.visibility_meters < POOR_VISIBILITY_M:
        return True
    if snapshot.wind_speed_kmh > STRONG_WIND_KMH:
        return True
    return False


def classify_weather(snapshot: Optional[WeatherSnapshot]) -> WeatherAssessment:
    if snapshot is None:
        return UNKNOWN_ASSESSMENT
    return WeatherAssessment(
        condition=describe_weather_code(snapshot.weather_code),
        is_bad=is_bad_weather(snapshot),
        raw=snapshot,
    )

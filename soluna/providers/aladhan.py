"""AlAdhan timings provider with mirror fallback."""

from typing import Any

import httpx
from loguru import logger

from soluna.providers.types import CALCULATION_METHODS, QueryParams

BASE_URLS = [
    "https://api.aladhan.com/v1/timingsByAddress",
    "https://aladhan.api.islamic.network/v1/timingsByAddress",
    "https://aladhan.api.alislam.ru/v1/timingsByAddress",
]


class UpstreamError(Exception):
    """Raised when no AlAdhan mirror returned usable data."""


async def get_soluna_data(
    params: QueryParams,
    *,
    base_urls: list[str] | None = None,
    timeout: float = 15.0,
) -> dict[str, Any]:
    """
    Fetch prayer times and sun data, trying each mirror in order.

    Args:
        params: Address, date and calculation method.
        base_urls: Mirrors to try. Defaults to ``BASE_URLS``.
        timeout: Per-request timeout in seconds.

    Returns:
        The unified soluna payload (meta, date, prayer, sun, moon).

    Raises:
        UpstreamError: Every mirror failed.
    """
    last_error: Exception | None = None

    async with httpx.AsyncClient(timeout=timeout) as client:
        for base_url in base_urls or BASE_URLS:
            url = f"{base_url}/{params.date}"
            try:
                response = await client.get(url, params={"address": params.address, "method": params.method})
                if response.status_code != 200:
                    raise UpstreamError(f"AlAdhan API error: {response.status_code} {response.reason_phrase}")

                payload = response.json()
                if payload.get("code") != 200:
                    raise UpstreamError(f"AlAdhan API returned error: {payload.get('status')}")

                return build_soluna_response(payload)
            except (httpx.HTTPError, UpstreamError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"AlAdhan mirror {base_url} failed: {e}")
                last_error = e

    if isinstance(last_error, UpstreamError):
        raise last_error
    raise UpstreamError(
        str(last_error) if last_error else "All AlAdhan API endpoints failed"
    ) from last_error


def build_soluna_response(payload: dict[str, Any]) -> dict[str, Any]:
    """Map a raw AlAdhan ``timingsByAddress`` payload to the soluna shape."""
    data = payload["data"]
    meta = data["meta"]
    timings = data["timings"]
    date = data["date"]
    method = meta.get("method") or {}

    return {
        "meta": {
            "latitude": meta["latitude"],
            "longitude": meta["longitude"],
            "timezone": meta["timezone"],
            "method": {
                "id": method.get("id"),
                "name": method.get("name"),
                "params": method.get("params"),
            },
        },
        "date": {
            "readable": date["readable"],
            "timestamp": date["timestamp"],
            "hijri": date.get("hijri"),
            "gregorian": date["gregorian"],
        },
        "prayer": timings,
        "sun": {
            "sunrise": timings["Sunrise"],
            "sunset": timings["Sunset"],
            "solarnoon": timings["Dhuhr"],  # Dhuhr approximates solar noon
            "daylength": calculate_day_length(timings["Sunrise"], timings["Sunset"]),
        },
        "moon": calculate_moon_phase(int(date["hijri"]["day"])),
    }


def calculate_day_length(sunrise: str, sunset: str) -> str:
    """Day length between two ``HH:MM`` strings, e.g. ``"12h 5m"``."""
    try:
        sunrise_h, sunrise_m = _parse_clock(sunrise)
        sunset_h, sunset_m = _parse_clock(sunset)
    except (AttributeError, IndexError, ValueError):
        return "-"
    length = (sunset_h * 60 + sunset_m) - (sunrise_h * 60 + sunrise_m)
    return f"{length // 60}h {length % 60}m"


def _parse_clock(value: str) -> tuple[int, int]:
    # Upstream may append a zone offset, e.g. "05:45 (+06)".
    hours, minutes = value.split()[0].split(":")[:2]
    return int(hours), int(minutes)


def calculate_moon_phase(hijri_day: int) -> dict[str, Any]:
    """
    Approximate the moon phase from the Hijri day of month.

    The Hijri calendar is lunar: day 1 is the new moon, around day 8 the
    first quarter, day 15 the full moon and day 22 the last quarter.
    """
    if hijri_day <= 4:
        phase = "New Moon"
    elif hijri_day <= 11:
        phase = "First Quarter"
    elif hijri_day <= 18:
        phase = "Full Moon"
    elif hijri_day <= 25:
        phase = "Last Quarter"
    else:
        phase = "New Moon"
    return {"phase": phase, "hijriDay": hijri_day}


def get_methods() -> list[dict[str, Any]]:
    """List available calculation methods."""
    return [{"id": method_id, "name": name} for method_id, name in CALCULATION_METHODS.items()]

# safewalk/services/transit_client.py
"""
Client for the external public-transit route provider.

Any failure (missing key, timeout, network error, non-2xx status, malformed
payload) is absorbed here and replaced with a direct walking itinerary, so
callers always receive a usable Itinerary.
"""

import asyncio
from typing import Optional

import httpx
from pydantic import ValidationError

from safewalk.core.config import settings
from safewalk.core.logger import logger
from safewalk.models.routing import Coordinate
from safewalk.models.transit import WALK, Itinerary, ItineraryInfo, ItineraryPath, TransitSegment


class TransitProviderError(RuntimeError):
    pass


def fallback_itinerary(
    origin: Coordinate,
    destination: Coordinate,
    minutes: float = settings.FALLBACK_WALK_MINUTES,
    distance_m: float = settings.FALLBACK_WALK_DISTANCE_M,
) -> Itinerary:
    """
    Single walking segment straight from origin to destination.
    """
    segment = TransitSegment(
        traffic_type=WALK,
        section_time=minutes,
        distance=distance_m,
        start_x=origin.lon,
        start_y=origin.lat,
        end_x=destination.lon,
        end_y=destination.lat,
    )
    return Itinerary(
        path=[
            ItineraryPath(
                path_type=1,
                info=ItineraryInfo(total_time=minutes, total_distance=distance_m, payment=0),
                sub_path=[segment],
            )
        ],
        is_fallback=True,
    )


class TransitClient:
    def __init__(
        self,
        *,
        base_url: str = settings.TRANSIT_API_URL,
        api_key: Optional[str] = settings.TRANSIT_API_KEY,
        timeout_s: float = settings.TRANSIT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout_s = timeout_s
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    async def fetch_itinerary(self, origin: Coordinate, destination: Coordinate) -> Itinerary:
        """
        Itinerary alternatives from origin to destination, or the fallback
        walking itinerary when the provider cannot be used.
        """
        try:
            return await asyncio.wait_for(self._request(origin, destination), self.timeout_s)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.warning(
                "Transit provider timed out after {:.1f} s; using direct walking fallback.",
                self.timeout_s,
            )
        except (httpx.HTTPError, httpx.InvalidURL, TransitProviderError) as exc:
            logger.warning("Transit provider failed ({}); using direct walking fallback.", exc)

        return fallback_itinerary(origin, destination)

    async def _request(self, origin: Coordinate, destination: Coordinate) -> Itinerary:
        if not self.api_key:
            raise TransitProviderError("no API key configured")

        params = {
            "SX": origin.lon,
            "SY": origin.lat,
            "EX": destination.lon,
            "EY": destination.lat,
            "apiKey": self.api_key,
        }

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_s),
            transport=self._transport,
            headers={"accept": "application/json"},
        ) as client:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransitProviderError(f"invalid JSON: {exc}") from exc

        result = payload.get("result") if isinstance(payload, dict) else None
        if not result:
            error = payload.get("error") if isinstance(payload, dict) else None
            raise TransitProviderError(f"no result in response (error={error!r})")

        try:
            itinerary = Itinerary.model_validate(result)
        except ValidationError as exc:
            raise TransitProviderError(
                f"malformed itinerary ({exc.error_count()} validation errors)"
            ) from exc

        logger.info(
            "Transit provider returned {} alternative(s); first has {} segment(s).",
            len(itinerary.path),
            len(itinerary.path[0].sub_path),
        )
        return itinerary

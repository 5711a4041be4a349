import asyncio
import logging
from typing import Optional, Sequence
import httpx
from pydantic import ValidationError
from .errors import InvalidInput, MissingCredential, NetworkError, NotFound, UpstreamError
from .models import BatchResult, LatLng, PlaceFailure, ResolvedPlace

logger = logging.getLogger(__name__)

FIND_PLACE_URL = "https://maps.googleapis.com/maps/api/place/findplacefromtext/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

CANDIDATE_FIELDS = ",".join(["place_id", "name"])
DETAIL_FIELDS = ",".join([
    "place_id",
    "name",
    "formatted_address",
    "geometry",
    "photos",
    "rating",
    "user_ratings_total",
    "website",
    "formatted_phone_number",
    "opening_hours",
    "types",
    "price_level",
])

# Per-place errors that a batch records instead of raising
PLACE_FAILURES = (NotFound, UpstreamError, NetworkError)


class PlacesClient:
    """Thin async wrapper over the three Google Maps endpoints the app uses."""

    def __init__(self, http: httpx.AsyncClient, api_key: Optional[str], bias_radius_meters: int = 50000):
        self.http = http
        self.api_key = api_key
        self.bias_radius_meters = bias_radius_meters

    async def _get(self, url: str, params: dict, not_found: str) -> dict:
        if not self.api_key:
            raise MissingCredential("GOOGLE_MAPS_API_KEY")

        # The key is added last so it never reaches the log line
        logger.debug("GET %s %s", url, params)
        try:
            response = await self.http.get(url, params={**params, "key": self.api_key})
        except httpx.TransportError as e:
            logger.error("Google Maps request to %s failed: %s", url, e)
            raise NetworkError(f"Could not reach Google Maps: {e}")

        if response.is_error:
            logger.error("Google Maps API error %s from %s", response.status_code, url)
            raise UpstreamError(response.status_code, response.text or f"Google Maps returned {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError(502, "Google Maps returned a non-JSON response")

        status = data.get("status", "OK")
        if status == "ZERO_RESULTS":
            raise NotFound(not_found)
        if status != "OK":
            message = data.get("error_message") or status
            logger.error("Google Maps status %s from %s: %s", status, url, message)
            raise UpstreamError(502, f"Google Maps error: {message}")
        return data

    async def find_place(self, text: str, bias: Optional[LatLng] = None) -> str:
        """Returns the place_id of the first Find Place From Text candidate."""
        params = {"input": text, "inputtype": "textquery", "fields": CANDIDATE_FIELDS}
        if bias is not None:
            params["locationbias"] = f"circle:{self.bias_radius_meters}@{bias.lat},{bias.lng}"

        not_found = f'No candidates found for "{text}"'
        data = await self._get(FIND_PLACE_URL, params, not_found)
        candidates = data.get("candidates") or []
        if not candidates or not candidates[0].get("place_id"):
            raise NotFound(not_found)
        return candidates[0]["place_id"]

    async def place_details(self, place_id: str) -> ResolvedPlace:
        data = await self._get(
            DETAILS_URL,
            {"place_id": place_id, "fields": DETAIL_FIELDS},
            f'No details found for place "{place_id}"',
        )
        result = dict(data.get("result") or {})
        result.setdefault("place_id", place_id)
        try:
            return ResolvedPlace.model_validate(result)
        except ValidationError:
            raise UpstreamError(502, f'Place details for "{place_id}" have no name or coordinates')

    async def geocode(self, address: str) -> LatLng:
        not_found = f'Could not geocode "{address}"'
        data = await self._get(GEOCODE_URL, {"address": address}, not_found)
        results = data.get("results") or []
        if not results:
            raise NotFound(not_found)
        try:
            return LatLng.model_validate(results[0]["geometry"]["location"])
        except (KeyError, TypeError, ValidationError):
            raise UpstreamError(502, f'Geocoding result for "{address}" has no coordinates')


class PlaceResolver:
    """
    Resolves place names to full place records.

    Direct lookups search for "{name} {location}". Biased lookups geocode a
    reference location first and pass it as a location bias.
    """

    def __init__(self, client: PlacesClient, max_concurrency: int = 5):
        self.client = client
        self.max_concurrency = max(1, max_concurrency)

    async def _lookup(self, name: str, location: Optional[str], bias: Optional[LatLng]) -> ResolvedPlace:
        text = f"{name} {location}" if location else name
        place_id = await self.client.find_place(text, bias)
        return await self.client.place_details(place_id)

    async def resolve(self, name: str, location: Optional[str] = None, near: Optional[str] = None) -> ResolvedPlace:
        bias = await self.client.geocode(near) if near else None
        return await self._lookup(name, location, bias)

    async def resolve_batch(self, names: Sequence[str], location: Optional[str] = None,
                            strategy: str = "direct") -> BatchResult:
        bias = None
        query_location = location
        if strategy == "biased":
            if not location:
                raise InvalidInput("A location is required for biased lookups")
            bias = await self.client.geocode(location)
            query_location = None

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def resolve_one(name: str) -> ResolvedPlace:
            async with semaphore:
                return await self._lookup(name, query_location, bias)

        outcomes = await asyncio.gather(*(resolve_one(n) for n in names), return_exceptions=True)

        result = BatchResult()
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, PLACE_FAILURES):
                logger.warning("Could not resolve place %r: %s", name, outcome.message)
                result.failures.append(PlaceFailure(name=name, error=outcome.message))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.places.append(outcome)

        logger.info("Resolved %d/%d places", len(result.places), len(names))
        return result
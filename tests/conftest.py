import asyncio
import json
from types import SimpleNamespace
import httpx
import pytest
from fastapi.testclient import TestClient
from travel_assistant.config import Settings
from travel_assistant.db import HotelStore
from travel_assistant.llm import GeminiClient
from travel_assistant.logic import TravelAssistant
from travel_assistant.main import app
from travel_assistant.places import PlaceResolver, PlacesClient
from travel_assistant.session import SessionStore


# --- Gemini ---

def completion(text):
    part = SimpleNamespace(text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


class FakeModel:
    """Stands in for genai.GenerativeModel; replies with the queued texts in order."""

    def __init__(self, *texts, error=None):
        self.texts = list(texts)
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        text = self.texts.pop(0) if len(self.texts) > 1 else self.texts[0]
        return completion(text)


def answer_json(location, places=()):
    return json.dumps({"location": location, "placesOfInterest": list(places)})


# --- Google Maps ---

def place_record(name, lat, lng, **extra):
    record = {
        "place_id": "pid_" + name.lower().replace(" ", "_"),
        "name": name,
        "formatted_address": f"{name}, somewhere",
        "geometry": {"location": {"lat": lat, "lng": lng}},
    }
    record.update(extra)
    return record


class FakeMaps:
    """A tiny Google Maps server for httpx.MockTransport."""

    def __init__(self, places=(), geocodes=None):
        self.places = {p["name"]: p for p in places}
        self.geocodes = geocodes or {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        path = request.url.path

        if path.endswith("/findplacefromtext/json"):
            text = params["input"]
            for name, record in self.places.items():
                if text.startswith(name):
                    return httpx.Response(200, json={
                        "status": "OK",
                        "candidates": [{"place_id": record["place_id"], "name": name}],
                    })
            return httpx.Response(200, json={"status": "ZERO_RESULTS", "candidates": []})

        if path.endswith("/details/json"):
            for record in self.places.values():
                if record["place_id"] == params["place_id"]:
                    return httpx.Response(200, json={"status": "OK", "result": record})
            return httpx.Response(200, json={"status": "NOT_FOUND"})

        if path.endswith("/geocode/json"):
            location = self.geocodes.get(params["address"])
            if location is None:
                return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
            lat, lng = location
            return httpx.Response(200, json={
                "status": "OK",
                "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}],
            })

        return httpx.Response(404, text="unknown endpoint")

    def requests_to(self, endpoint):
        return [r for r in self.requests if r.url.path.endswith(f"/{endpoint}/json")]

    def client(self, api_key="test-maps-key"):
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return PlacesClient(http, api_key)


# --- Supabase ---

def _column(row, column):
    value = row
    for key in column.split("->>"):
        value = value.get(key) if isinstance(value, dict) else None
    return value


def _unescape_like(pattern):
    return pattern.replace("\\%", "%").replace("\\_", "_").replace("\\\\", "\\")


class FakeQuery:
    def __init__(self, rows, calls):
        self.rows = rows
        self.calls = calls
        self._limit = None
        self._range = None

    def select(self, columns):
        self.calls.append(("select", columns))
        return self

    def eq(self, column, value):
        self.calls.append(("eq", column, value))
        self.rows = [r for r in self.rows if _column(r, column) == value]
        return self

    def ilike(self, column, pattern):
        self.calls.append(("ilike", column, pattern))
        wanted = _unescape_like(pattern).lower()
        self.rows = [r for r in self.rows if str(_column(r, column) or "").lower() == wanted]
        return self

    def limit(self, count):
        self.calls.append(("limit", count))
        self._limit = count
        return self

    def order(self, column):
        self.calls.append(("order", column))
        self.rows = sorted(self.rows, key=lambda r: str(_column(r, column)))
        return self

    def range(self, start, end):
        self.calls.append(("range", start, end))
        self._range = (start, end)
        return self

    def execute(self):
        rows = self.rows if self._limit is None else self.rows[:self._limit]
        if self._range is not None:
            rows = rows[self._range[0]:self._range[1] + 1]
        return SimpleNamespace(data=[dict(r) for r in rows])


class FakeSupabase:
    def __init__(self, rows=()):
        self.rows = list(rows)
        self.calls = []
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return FakeQuery(self.rows, self.calls)


def hotel_row(name, city, country_code, **extra):
    row = {
        "name": name,
        "region": {"type": "City", "name": city, "country_code": country_code},
        "address": f"1 Main Street, {city}",
        "images": [],
        "amenity_groups": [],
        "description_struct": [],
        "star_rating": 4,
    }
    row.update(extra)
    return row


# --- Fixtures ---

@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def build_client():
    """Points the app at fakes and returns a TestClient plus the fakes used."""

    def build(completions=("{}",), maps=None, rows=(), ai_key="test-ai-key",
              maps_key="test-maps-key", model=None):
        config = Settings(
            GOOGLE_AI_STUDIO_API_KEY=ai_key,
            GOOGLE_MAPS_API_KEY=maps_key,
            SUPABASE_URL=None,
            SUPABASE_KEY=None,
        )
        maps = maps or FakeMaps()
        model = model or FakeModel(*completions)
        resolver = PlaceResolver(maps.client(maps_key), max_concurrency=2)
        hotels = HotelStore(None, None, client=FakeSupabase(rows))
        llm = GeminiClient(ai_key, "gemini-test", config.generation_config, model=model)

        app.state.settings = config
        app.state.hotels = hotels
        app.state.resolver = resolver
        app.state.assistant = TravelAssistant(llm, resolver, hotels)
        app.state.sessions = SessionStore()
        return SimpleNamespace(http=TestClient(app), maps=maps, model=model, hotels=hotels)

    return build

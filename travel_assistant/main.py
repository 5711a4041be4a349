from fastapi import FastAPI, Query, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional
import logging
import os
import time
import httpx
from .config import Settings, settings
from .db import HotelStore
from .errors import MissingCredential, NotFound, TravelAssistantError
from .llm import GeminiClient
from .logic import TravelAssistant
from .models import (
    AIRequest, ChatRequest, HotelCompareRequest, HotelComparison, HotelMatchRequest,
    HotelSearchRequest, HotelSearchResponse, PlacesBatchRequest, ResolvedPlace, SessionView,
    StructuredAnswer,
)
from .places import PlaceResolver, PlacesClient
from .session import SessionStore

FRONTEND_DIR = Path(__file__).parent / "frontend"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# httpx logs full request URLs, which carry the Maps key
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    hotels = HotelStore(settings.SUPABASE_URL, settings.SUPABASE_KEY,
                        table=settings.HOTELS_TABLE, limit=settings.HOTEL_LOOKUP_LIMIT)
    hotels.connect()
    http = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)

    resolver = PlaceResolver(
        PlacesClient(http, settings.GOOGLE_MAPS_API_KEY, settings.PLACES_BIAS_RADIUS_METERS),
        max_concurrency=settings.PLACES_MAX_CONCURRENCY,
    )
    llm = GeminiClient(settings.GOOGLE_AI_STUDIO_API_KEY, settings.GEMINI_MODEL, settings.generation_config)

    app.state.settings = settings
    app.state.hotels = hotels
    app.state.resolver = resolver
    app.state.assistant = TravelAssistant(llm, resolver, hotels)
    app.state.sessions = SessionStore(max_sessions=settings.MAX_SESSIONS)
    logger.info("Travel assistant started (model=%s)", settings.GEMINI_MODEL)
    try:
        yield
    finally:
        await http.aclose()
        hotels.close()


app = FastAPI(
    title="Travel Assistant API",
    description="Turns travel questions into places on a map using Gemini and Google Maps.",
    version="1.0.0",
    lifespan=lifespan,
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware: Process Time
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response

# --- Error handling ---

@app.exception_handler(TravelAssistantError)
async def assistant_error_handler(request: Request, exc: TravelAssistantError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())[1:])
        problems.append(f"{field}: {err['msg']}" if field else err["msg"])
    return JSONResponse(status_code=400, content={"error": "; ".join(problems)})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

# Mount frontend
app.mount("/app", StaticFiles(directory=FRONTEND_DIR, html=True), name="frontend")

@app.get("/")
def read_root():
    return {"message": "Welcome to the Travel Assistant API! Visit /app to see the UI."}

# --- Dependencies ---

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_assistant(request: Request) -> TravelAssistant:
    return request.app.state.assistant

def get_resolver(request: Request) -> PlaceResolver:
    return request.app.state.resolver

def get_hotels(request: Request) -> HotelStore:
    return request.app.state.hotels

def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions

# --- Core Endpoints ---

@app.get("/health")
def health(config: Settings = Depends(get_settings), hotels: HotelStore = Depends(get_hotels)):
    return {
        "status": "ok",
        "services": {
            "gemini": bool(config.GOOGLE_AI_STUDIO_API_KEY),
            "maps": bool(config.GOOGLE_MAPS_API_KEY),
            "hotel_store": hotels.connected,
        },
    }

@app.post("/ai", response_model=StructuredAnswer)
async def ask_ai(body: AIRequest, assistant: TravelAssistant = Depends(get_assistant)):
    return await assistant.ask(body.to_query())

@app.get("/places")
async def find_place(
    place_name: str = Query(..., alias="placeName", min_length=1),
    location: Optional[str] = Query(None),
    near: Optional[str] = Query(None, description="Reference location used as a search bias"),
    resolver: PlaceResolver = Depends(get_resolver),
):
    place = await resolver.resolve(place_name, location=location, near=near)
    logger.info("Found place: %s", place.name)
    return {"place": place}

@app.post("/places", response_model=List[ResolvedPlace])
async def resolve_places(body: PlacesBatchRequest, resolver: PlaceResolver = Depends(get_resolver)):
    names = body.place_names()
    if not names:
        return []
    batch = await resolver.resolve_batch(names, location=body.location, strategy=body.strategy)
    return batch.places

@app.post("/hotels", response_model=HotelSearchResponse)
def hotels_by_city(body: HotelSearchRequest, hotels: HotelStore = Depends(get_hotels)):
    found = hotels.find_hotels_by_city(body.city, body.country_code)
    return HotelSearchResponse(count=len(found), hotels=found)

@app.post("/hotels/search", response_model=HotelSearchResponse)
def hotels_by_name_or_city(body: HotelMatchRequest, hotels: HotelStore = Depends(get_hotels)):
    found = hotels.find_hotels_by_name_or_city(body.name, body.city, body.country_code)
    return HotelSearchResponse(count=len(found), hotels=found)

@app.post("/hotels/compare", response_model=HotelComparison)
async def compare_hotel(body: HotelCompareRequest, assistant: TravelAssistant = Depends(get_assistant)):
    return await assistant.compare_hotel(body.name, body.city, body.country_code)

@app.get("/maps-key")
def maps_key(config: Settings = Depends(get_settings)):
    if not config.GOOGLE_MAPS_API_KEY:
        raise MissingCredential("GOOGLE_MAPS_API_KEY")
    return {"apiKey": config.GOOGLE_MAPS_API_KEY}

# --- Chat sessions ---

@app.post("/chat", response_model=SessionView)
async def chat(
    body: ChatRequest,
    assistant: TravelAssistant = Depends(get_assistant),
    sessions: SessionStore = Depends(get_sessions),
):
    session = sessions.get_or_create(body.session_id)
    return await assistant.run_turn(session, body.message)

@app.get("/sessions/{session_id}", response_model=SessionView)
def get_session(session_id: str, sessions: SessionStore = Depends(get_sessions)):
    session = sessions.get(session_id)
    if session is None:
        raise NotFound(f"Session {session_id} not found")
    return session.view()


def run():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))


if __name__ == "__main__":
    run()

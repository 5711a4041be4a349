from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NOT_TRAVEL_RELATED = "not_travel_related"
NO_LOCATION = "null"

PLACE_TYPES = ("attraction", "restaurant", "hotel", "shopping", "entertainment")
PRICE_RANGES = ("budget", "moderate", "expensive")
EXPERIENCES = ("local", "tourist", "authentic", "modern")


class LocationKind(str, Enum):
    KNOWN = "known"
    UNRELATED = "unrelated"
    UNSTATED = "unstated"


# --- Conversation ---

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    text: str


class Query(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    history: List[ChatMessage] = []


class AIRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_prompt: str = Field(alias="userPrompt", min_length=1)
    conversation_history: List[ChatMessage] = Field(default_factory=list, alias="conversationHistory")

    @field_validator("user_prompt")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('Missing "userPrompt" in request body')
        return value

    def to_query(self) -> Query:
        return Query(text=self.user_prompt, history=self.conversation_history)


# --- Model output ---

def _known_or_none(value: Any, allowed: tuple) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value if value in allowed else None


class PlaceOfInterest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    description: str = ""
    type: Optional[Literal[PLACE_TYPES]] = None
    price_range: Optional[Literal[PRICE_RANGES]] = Field(None, alias="priceRange")
    experience: Optional[Literal[EXPERIENCES]] = None

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value):
        return "" if value is None else value

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value):
        return _known_or_none(value, PLACE_TYPES)

    @field_validator("price_range", mode="before")
    @classmethod
    def _price_range(cls, value):
        return _known_or_none(value, PRICE_RANGES)

    @field_validator("experience", mode="before")
    @classmethod
    def _experience(cls, value):
        return _known_or_none(value, EXPERIENCES)


class StructuredAnswer(BaseModel):
    """
    The JSON shape the model is asked to produce.

    `location` keeps the wire sentinels ("not_travel_related", "null");
    Python callers should use `kind` and `destination` instead.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    location: str = Field(min_length=1)
    places_of_interest: List[PlaceOfInterest] = Field(default_factory=list, alias="placesOfInterest")

    @model_validator(mode="before")
    @classmethod
    def _unrelated_has_no_places(cls, data):
        # Entries of an unrelated answer are discarded unvalidated.
        if isinstance(data, dict) and str(data.get("location", "")).strip() == NOT_TRAVEL_RELATED:
            data = {k: v for k, v in data.items() if k not in ("placesOfInterest", "places_of_interest")}
        return data

    @property
    def kind(self) -> LocationKind:
        if self.location == NOT_TRAVEL_RELATED:
            return LocationKind.UNRELATED
        if self.location == NO_LOCATION:
            return LocationKind.UNSTATED
        return LocationKind.KNOWN

    @property
    def destination(self) -> Optional[str]:
        return self.location if self.kind == LocationKind.KNOWN else None


# --- Places ---

class LatLng(BaseModel):
    lat: float
    lng: float


class Geometry(BaseModel):
    location: LatLng


class ResolvedPlace(BaseModel):
    place_id: Optional[str] = None
    name: str
    formatted_address: str = ""
    geometry: Geometry
    photos: List[Dict[str, Any]] = []
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    website: Optional[str] = None
    formatted_phone_number: Optional[str] = None
    opening_hours: Optional[Dict[str, Any]] = None
    price_level: Optional[int] = None
    types: List[str] = []


class PlaceFailure(BaseModel):
    name: str
    error: str


class BatchResult(BaseModel):
    places: List[ResolvedPlace] = []
    failures: List[PlaceFailure] = []


class PlaceMatch(BaseModel):
    name: str
    place: Optional[ResolvedPlace] = None


class PlacesBatchRequest(BaseModel):
    places: List[Union[PlaceOfInterest, str]]
    location: Optional[str] = None
    strategy: Literal["direct", "biased"] = "direct"

    def place_names(self) -> List[str]:
        return [p if isinstance(p, str) else p.name for p in self.places]


# --- Hotels ---

class HotelRegion(BaseModel):
    type: Optional[str] = None
    name: str
    country_code: Optional[str] = None


class AmenityGroup(BaseModel):
    group_name: str
    amenities: List[str] = []


class DescriptionSection(BaseModel):
    title: str = ""
    paragraphs: List[str] = []


class HotelRecord(BaseModel):
    id: Optional[Union[int, str]] = None
    name: str
    region: HotelRegion
    address: str = ""
    images: List[str] = []
    amenity_groups: List[AmenityGroup] = []
    description_struct: List[DescriptionSection] = []
    star_rating: Optional[float] = None


class HotelSearchRequest(BaseModel):
    city: str = Field(min_length=1)
    country_code: Optional[str] = None


class HotelMatchRequest(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None
    country_code: Optional[str] = None


class HotelCompareRequest(BaseModel):
    name: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country_code: Optional[str] = None


class HotelSearchResponse(BaseModel):
    success: bool = True
    count: int
    hotels: List[HotelRecord]


class HotelComparison(BaseModel):
    place: Optional[ResolvedPlace] = None
    hotel: Optional[HotelRecord] = None


# --- Chat sessions ---

class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    session_id: Optional[str] = None


class SessionView(BaseModel):
    session_id: str
    turn: int
    answer: Optional[StructuredAnswer] = None
    places: List[ResolvedPlace] = []
    matches: List[PlaceMatch] = []
    transcript: List[ChatMessage] = []

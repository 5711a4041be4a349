import asyncio
import logging
from typing import Optional, Tuple
from fastapi.concurrency import run_in_threadpool
from .db import HotelStore
from .errors import NotFound, StaleTurn
from .llm import GeminiClient
from .matching import names_match
from .models import BatchResult, HotelComparison, LocationKind, Query, SessionView, StructuredAnswer
from .normalizer import normalize_completion
from .places import PlaceResolver
from .prompts import build_prompt
from .session import ChatSession

logger = logging.getLogger(__name__)


def describe_answer(answer: StructuredAnswer, batch: BatchResult) -> str:
    """The assistant's chat bubble for one turn."""
    if answer.kind == LocationKind.UNRELATED:
        return "I can only help with travel-related questions. Try asking about a destination!"

    where = f" in {answer.destination}" if answer.destination else ""
    if not answer.places_of_interest:
        return f"I couldn't find specific places{where}. Could you tell me more about your trip?"

    names = ", ".join(p.name for p in answer.places_of_interest)
    reply = f"Here are some places{where}: {names}."
    if batch.failures:
        reply += f" ({len(batch.failures)} could not be shown on the map.)"
    return reply


class TravelAssistant:
    def __init__(self, llm: GeminiClient, resolver: PlaceResolver, hotels: HotelStore):
        self.llm = llm
        self.resolver = resolver
        self.hotels = hotels

    async def ask(self, query: Query) -> StructuredAnswer:
        """Prompt -> completion -> StructuredAnswer. Any failure aborts the request."""
        prompt = build_prompt(query.text, query.history)
        raw = await self.llm.complete(prompt)
        answer = normalize_completion(raw)
        logger.info("AI answer: location=%r, %d places", answer.location, len(answer.places_of_interest))
        return answer

    async def answer_and_resolve(self, query: Query) -> Tuple[StructuredAnswer, BatchResult]:
        answer = await self.ask(query)
        if not answer.places_of_interest:
            return answer, BatchResult()

        names = [p.name for p in answer.places_of_interest]
        batch = await self.resolver.resolve_batch(names, location=answer.destination)
        return answer, batch

    async def run_turn(self, session: ChatSession, text: str) -> SessionView:
        """
        Runs one chat turn for a session.

        Starting a turn cancels the session's previous in-flight turn; a
        cancelled or outdated turn raises StaleTurn and leaves the session as
        the newer turn left it.
        """
        turn = session.begin_turn()
        query = Query(text=text, history=session.history())

        task = asyncio.create_task(self.answer_and_resolve(query))
        session.track(task)
        try:
            answer, batch = await task
        except asyncio.CancelledError:
            if session.is_current(turn):
                raise
            raise StaleTurn("Superseded by a newer query")

        reply = describe_answer(answer, batch)
        if not session.apply(turn, text, reply, answer, batch.places):
            raise StaleTurn("Superseded by a newer query")
        return session.view()

    async def compare_hotel(self, name: str, city: str, country_code: Optional[str] = None) -> HotelComparison:
        """
        Pairs the Google Maps record of a hotel with its entry in the hotel store.
        """
        try:
            place = await self.resolver.resolve(name, location=city)
        except NotFound:
            place = None

        hotels = await run_in_threadpool(
            self.hotels.find_hotels_by_name_or_city, name=name, city=city, country_code=country_code
        )
        hotel = None
        if hotels:
            hotel = hotels[0]
            if place is not None:
                hotel = next((h for h in hotels if names_match(h.name, place.name)), hotel)

        if place is None and hotel is None:
            raise NotFound(f'No hotel found for "{name}" in {city}')
        return HotelComparison(place=place, hotel=hotel)

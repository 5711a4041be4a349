"""
Chat session state: the running transcript plus the latest answer and the
places resolved for it.

Each query gets a turn token from begin_turn(). Only the most recent turn may
write its result back; anything older is dropped so a slow batch cannot
overwrite a newer one.
"""
import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional
from .matching import match_places
from .models import ChatMessage, PlaceMatch, ResolvedPlace, SessionView, StructuredAnswer

logger = logging.getLogger(__name__)


@dataclass
class ChatSession:
    session_id: str
    transcript: List[ChatMessage] = field(default_factory=list)
    answer: Optional[StructuredAnswer] = None
    places: List[ResolvedPlace] = field(default_factory=list)
    turn: int = 0
    task: Optional[asyncio.Task] = None

    def history(self) -> List[ChatMessage]:
        return list(self.transcript)

    def begin_turn(self) -> int:
        self.turn += 1
        return self.turn

    def is_current(self, turn: int) -> bool:
        return turn == self.turn

    def track(self, task: asyncio.Task) -> None:
        """Remember the running turn task, cancelling the one it supersedes."""
        previous, self.task = self.task, task
        if previous is not None and not previous.done():
            previous.cancel()

    def apply(self, turn: int, question: str, reply: str,
              answer: StructuredAnswer, places: List[ResolvedPlace]) -> bool:
        if not self.is_current(turn):
            return False
        self.transcript.append(ChatMessage(role="user", text=question))
        self.transcript.append(ChatMessage(role="assistant", text=reply))
        self.answer = answer
        self.places = list(places)
        return True

    def matches(self) -> List[PlaceMatch]:
        if self.answer is None:
            return []
        return match_places(self.answer.places_of_interest, self.places)

    def view(self) -> SessionView:
        return SessionView(
            session_id=self.session_id,
            turn=self.turn,
            answer=self.answer,
            places=self.places,
            matches=self.matches(),
            transcript=self.transcript,
        )


class SessionStore:
    """
    In-process sessions, owned by the app (see main.lifespan).

    Holds at most `max_sessions`; the least recently used session is evicted
    first. Ids are always minted here, never taken from the caller.
    """

    def __init__(self, max_sessions: int = 1000):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()

    def get(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def get_or_create(self, session_id: Optional[str] = None) -> ChatSession:
        """Returns the known session, or a new one under a fresh id."""
        if session_id:
            session = self.get(session_id)
            if session is not None:
                return session
            logger.info("Unknown session %s, starting a new one", session_id)

        session = ChatSession(session_id=uuid.uuid4().hex)
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("Evicted session %s", evicted)
        return session

    def __len__(self) -> int:
        return len(self._sessions)

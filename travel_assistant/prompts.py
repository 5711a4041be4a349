from typing import List, Optional
from .models import ChatMessage, NOT_TRAVEL_RELATED, NO_LOCATION

ANSWER_SCHEMA = """{
  "location": "City, Country",
  "placesOfInterest": [
    {
      "name": "Exact name of the place",
      "description": "One or two sentences about why it is worth visiting",
      "type": "attraction|restaurant|hotel|shopping|entertainment",
      "priceRange": "budget|moderate|expensive",
      "experience": "local|tourist|authentic|modern"
    }
  ]
}"""

ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


def format_history(history: Optional[List[ChatMessage]]) -> str:
    return "\n".join(f"{ROLE_LABELS[m.role]}: {m.text}" for m in history or [])


def build_prompt(query: str, history: Optional[List[ChatMessage]] = None) -> str:
    """
    Builds the instruction sent to the model for one user query.

    The result depends only on the arguments, and the query is embedded as-is.
    """
    sections = [
        "You are a travel assistant. Reply ONLY with a JSON object using exactly this schema:",
        ANSWER_SCHEMA,
        (
            f'If the user does not mention a destination, set "location" to "{NO_LOCATION}". '
            "Use real, searchable place names so they can be found on a map."
        ),
        (
            "If the question is not related to travel, reply with exactly:\n"
            f'{{"location": "{NOT_TRAVEL_RELATED}", "placesOfInterest": []}}'
        ),
    ]

    transcript = format_history(history)
    if transcript:
        sections.append(f"Conversation so far:\n{transcript}")

    sections.append(f"Current question:\nUser: {query}")
    return "\n\n".join(sections)

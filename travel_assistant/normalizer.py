import json
import logging
from pydantic import ValidationError
from .errors import MalformedResponse
from .models import StructuredAnswer

logger = logging.getLogger(__name__)

FENCES = ("```", "`")


def _strip_once(text: str) -> str:
    text = text.strip()
    for fence in FENCES:
        if text.startswith(fence):
            text = text[len(fence):]
            if text[:4].lower() == "json":
                text = text[4:]
            break
    for fence in FENCES:
        if text.endswith(fence):
            text = text[:-len(fence)]
            break
    return text.strip()


def strip_fences(text: str) -> str:
    """
    Removes the markdown wrapping models like to put around JSON:
    ```json ... ```, ``` ... ```, `json ... ` or ` ... `.

    Nested wrappers are peeled until nothing changes, so the result is
    always a fixed point.
    """
    stripped = _strip_once(text)
    while stripped != text:
        text, stripped = stripped, _strip_once(stripped)
    return stripped


def normalize_completion(raw: str) -> StructuredAnswer:
    text = strip_fences(raw or "")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Completion is not valid JSON: %s", e)
        raise MalformedResponse(f"AI response is not valid JSON: {e.msg}", raw_text=raw)

    if not isinstance(payload, dict):
        raise MalformedResponse("AI response is not a JSON object", raw_text=raw)
    if not isinstance(payload.get("location"), str):
        raise MalformedResponse('AI response has no "location" string', raw_text=raw)
    if not isinstance(payload.get("placesOfInterest"), list):
        raise MalformedResponse('AI response has no "placesOfInterest" array', raw_text=raw)

    try:
        return StructuredAnswer.model_validate(payload)
    except ValidationError as e:
        logger.error("Completion failed schema validation: %s", e)
        raise MalformedResponse(
            f"AI response does not match the expected schema ({e.error_count()} errors)",
            raw_text=raw,
        )

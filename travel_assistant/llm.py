import logging
from typing import Optional
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from .errors import MalformedResponse, MissingCredential, NetworkError, UpstreamError

logger = logging.getLogger(__name__)


class GeminiClient:
    """
    Completion client for the Gemini generateContent endpoint.

    One non-streaming request per prompt, no retries. Generation parameters are
    fixed at construction time.
    """

    def __init__(self, api_key: Optional[str], model_name: str, generation_config: dict, model=None):
        self.api_key = api_key
        self.model_name = model_name
        self.generation_config = generation_config
        self._model = model

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name, generation_config=self.generation_config)
        return self._model

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise MissingCredential("GOOGLE_AI_STUDIO_API_KEY")

        model = self._get_model()
        try:
            response = await model.generate_content_async(prompt)
        except google_exceptions.RetryError as e:
            logger.error("Gemini request did not complete: %s", e)
            raise NetworkError(f"Could not reach the AI service: {e}")
        except google_exceptions.GoogleAPICallError as e:
            logger.error("Gemini API error %s: %s", e.code, e.message)
            raise UpstreamError(e.code, f"AI service error: {e.message}")
        except (ConnectionError, TimeoutError) as e:
            logger.error("Gemini request failed: %s", e)
            raise NetworkError(f"Could not reach the AI service: {e}")

        return completion_text(response)


def completion_text(response) -> str:
    """Pulls candidates[0].content.parts[0].text out of a generateContent response."""
    try:
        return response.candidates[0].content.parts[0].text
    except (IndexError, AttributeError, TypeError):
        raise MalformedResponse("AI response contains no candidate text")

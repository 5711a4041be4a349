import os
from typing import Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()

class Settings(BaseSettings):
    # API Keys
    GOOGLE_AI_STUDIO_API_KEY: Optional[str] = os.getenv("GOOGLE_AI_STUDIO_API_KEY")
    GOOGLE_MAPS_API_KEY: Optional[str] = os.getenv("GOOGLE_MAPS_API_KEY")

    # Hotel store (Supabase)
    SUPABASE_URL: Optional[str] = os.getenv("SUPABASE_URL")
    SUPABASE_KEY: Optional[str] = os.getenv("SUPABASE_KEY")
    HOTELS_TABLE: str = "hotels"
    HOTEL_LOOKUP_LIMIT: int = 10

    # Model Configuration (fixed per deployment, never taken from requests)
    GEMINI_MODEL: str = "gemini-1.5-flash"
    LLM_TEMPERATURE: float = 0.7
    LLM_TOP_K: int = 40
    LLM_TOP_P: float = 0.95
    LLM_MAX_OUTPUT_TOKENS: int = 2048

    # Places lookups
    PLACES_MAX_CONCURRENCY: int = 5
    PLACES_BIAS_RADIUS_METERS: int = 50000
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Server
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"
    MAX_SESSIONS: int = 1000

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def generation_config(self) -> dict:
        return {
            "temperature": self.LLM_TEMPERATURE,
            "top_k": self.LLM_TOP_K,
            "top_p": self.LLM_TOP_P,
            "max_output_tokens": self.LLM_MAX_OUTPUT_TOKENS,
        }

    @property
    def cors_origins(self) -> list:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()

import logging
from typing import List, Optional
from supabase import create_client, Client
from .errors import InvalidInput, StoreUnavailable
from .matching import normalize_name
from .models import HotelRecord

logger = logging.getLogger(__name__)

# PostgREST caps a single response at max_rows (1000 by default).
PAGE_SIZE = 1000


def escape_like(value: str) -> str:
    """Escapes LIKE wildcards so ilike behaves as case-insensitive equality."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class HotelStore:
    """
    Read-only access to the hotel documents in the Supabase `hotels` table.

    Each row carries a `region` JSON column ({type, name, country_code}); the
    lookups filter on it. The hosting process owns the connection through
    connect() and close().
    """

    def __init__(self, url: Optional[str], key: Optional[str], table: str = "hotels",
                 limit: int = 10, client: Optional[Client] = None,
                 page_size: int = PAGE_SIZE):
        self.url = url
        self.key = key
        self.table = table
        self.limit = limit
        self.page_size = page_size
        self.client = client

    @property
    def connected(self) -> bool:
        return self.client is not None

    def connect(self) -> None:
        if self.client is not None:
            return
        if self.url and self.key and "your_supabase_url" not in self.url:
            self.client = create_client(self.url, self.key)
            logger.info("Connected to Supabase table %r", self.table)
        else:
            logger.warning("Supabase credentials not found. Hotel lookups are disabled.")

    def close(self) -> None:
        self.client = None

    def _query(self):
        if not self.client:
            raise StoreUnavailable("Hotel database unavailable")
        return self.client.table(self.table).select("*")

    def find_hotels_by_city(self, city: str, country_code: Optional[str] = None) -> List[HotelRecord]:
        """Hotels whose region is the given city, matched case-insensitively."""
        if not city or not city.strip():
            raise InvalidInput("City parameter is required")

        query = self._query().eq("region->>type", "City").ilike("region->>name", escape_like(city.strip()))
        if country_code:
            query = query.eq("region->>country_code", country_code.upper())

        response = query.limit(self.limit).execute()
        hotels = [HotelRecord(**row) for row in response.data]
        logger.info("Found %d hotels in %s", len(hotels), city)
        return hotels

    def find_hotels_by_name_or_city(self, name: Optional[str] = None, city: Optional[str] = None,
                                    country_code: Optional[str] = None) -> List[HotelRecord]:
        """
        Substring lookup on hotel name and/or city, ignoring case, accents and
        punctuation on both sides.

        Accents cannot be folded in a PostgREST filter, so rows are read in
        pages of `page_size` (ordered by name, narrowed by country when one
        is given) and matched here. Scanning stops once `limit` hotels match.
        """
        name_key = normalize_name(name or "")
        city_key = normalize_name(city or "")
        if not name_key and not city_key:
            raise InvalidInput("A hotel name or city is required")

        hotels = []
        start = 0
        while True:
            query = self._query()
            if country_code:
                query = query.eq("region->>country_code", country_code.upper())
            rows = query.order("name").range(start, start + self.page_size - 1).execute().data

            for row in rows:
                hotel = HotelRecord(**row)
                if name_key and name_key not in normalize_name(hotel.name):
                    continue
                if city_key and city_key not in normalize_name(hotel.region.name):
                    continue
                hotels.append(hotel)
                if len(hotels) >= self.limit:
                    return hotels

            if len(rows) < self.page_size:
                return hotels
            start += self.page_size

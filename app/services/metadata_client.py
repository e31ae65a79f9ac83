"""
TMDB metadata enrichment.

`lookup` is the only call the rest of the service depends on; it never raises
and returns None whenever nothing usable came back. `search` is for
interactive title search and does raise, so the caller can show the error.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from app.config import settings
from app.models.movie import ContentType
from app.schemas.movie import MovieMetadata, SearchResult

logger = logging.getLogger(__name__)

PLACEHOLDER_KEYS = {"", "your_tmdb_api_key_here"}
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="


class MetadataServiceError(Exception):
    """TMDB answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# -- response parsing -------------------------------------------------------

def parse_year(date_str: Optional[str]) -> Optional[int]:
    """'2010-07-16' -> 2010; blank or malformed -> None."""
    if not date_str:
        return None
    head = date_str.split("-")[0]
    return int(head) if head.isdigit() else None


def parse_rating(vote_average: Optional[float]) -> Optional[str]:
    """One decimal place; TMDB reports 0 for unrated titles."""
    if not vote_average or vote_average <= 0:
        return None
    return f"{vote_average:.1f}"


def parse_genres(genres: Optional[List[Dict[str, Any]]]) -> Optional[str]:
    names = [g.get("name") for g in genres or [] if g.get("name")]
    return ", ".join(names) if names else None


def poster_url(poster_path: Optional[str]) -> Optional[str]:
    if not poster_path:
        return None
    return f"{settings.TMDB_IMAGE_BASE_URL}{poster_path}"


def parse_details(
    data: Dict[str, Any], content_type: ContentType, vibe: Optional[str] = None
) -> Optional[MovieMetadata]:
    """Convert a TMDB movie/tv details payload into MovieMetadata."""
    if content_type == ContentType.TV:
        title = data.get("name")
        date_str = data.get("first_air_date")
        # Episode runtime stands in for a TV show's runtime
        episode_runtimes = data.get("episode_run_time") or []
        runtime = episode_runtimes[0] if episode_runtimes else None
    else:
        title = data.get("title")
        date_str = data.get("release_date")
        runtime = data.get("runtime") or None

    if not title:
        return None

    return MovieMetadata(
        title=title,
        content_type=content_type,
        api_source="tmdb",
        api_id=str(data["id"]) if data.get("id") is not None else None,
        year=parse_year(date_str),
        poster_url=poster_url(data.get("poster_path")),
        rating=parse_rating(data.get("vote_average")),
        runtime_minutes=runtime,
        genres=parse_genres(data.get("genres")),
        plot=data.get("overview") or None,
        vibe=vibe,
    )


def pick_trailer(videos: List[Dict[str, Any]]) -> Optional[str]:
    """Official YouTube trailer, then any YouTube trailer, then any YouTube video."""
    youtube = [v for v in videos if v.get("site") == "YouTube" and v.get("key")]
    trailers = [v for v in youtube if v.get("type") == "Trailer"]
    for candidates in ([v for v in trailers if v.get("official")], trailers, youtube):
        if candidates:
            return f"{YOUTUBE_WATCH_URL}{candidates[0]['key']}"
    return None


class TMDBClient:
    """Thin wrapper around The Movie Database (TMDb) REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = settings.TMDB_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.TMDB_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.TMDB_API_TIMEOUT
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return self.api_key not in PLACEHOLDER_KEYS

    def _get(self, path: str, **params) -> Dict[str, Any]:
        params["api_key"] = self.api_key
        try:
            response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        except requests.RequestException as ex:
            raise MetadataServiceError(f"TMDB request failed: {ex}") from ex

        if response.status_code == 401:
            raise MetadataServiceError("TMDB API key is invalid or not activated.", 401)
        if not response.ok:
            try:
                detail = response.json().get("status_message", "Unknown error")
            except ValueError:
                detail = "Unknown error"
            raise MetadataServiceError(
                f"TMDB API error: {response.status_code} - {detail}", response.status_code
            )
        try:
            return response.json()
        except ValueError as ex:
            raise MetadataServiceError("TMDB returned a non-JSON response") from ex

    @staticmethod
    def _kind(content_type: ContentType) -> str:
        return "tv" if content_type == ContentType.TV else "movie"

    # -- public API ---------------------------------------------------------

    def search(self, query: str, content_type: ContentType = ContentType.MOVIE) -> List[SearchResult]:
        """
        Search titles by name.

        Raises:
            MetadataServiceError: Key not configured, or TMDB failed
        """
        if not self.configured:
            raise MetadataServiceError("TMDB API key is not configured.")

        query = (query or "").strip()
        if not query:
            return []

        data = self._get(f"/search/{self._kind(content_type)}", query=query, language="en-US")
        results = data.get("results")
        if not isinstance(results, list):
            return []

        title_key, date_key = (
            ("name", "first_air_date") if content_type == ContentType.TV else ("title", "release_date")
        )
        return [
            SearchResult(
                id=item["id"],
                title=item.get(title_key) or "",
                year=str(parse_year(item.get(date_key)) or "Unknown"),
                poster_url=poster_url(item.get("poster_path")),
                content_type=content_type,
            )
            for item in results
            if item.get("id") is not None
        ]

    def get_keyword(self, tmdb_id: str, content_type: ContentType = ContentType.MOVIE) -> Optional[str]:
        """First keyword of a title, used as its "vibe"."""
        if not self.configured:
            return None
        try:
            data = self._get(f"/{self._kind(content_type)}/{tmdb_id}/keywords")
        except MetadataServiceError as ex:
            logger.warning(f"TMDB keywords for {content_type.value} {tmdb_id} unavailable: {ex}")
            return None
        # Movies answer with "keywords", TV shows with "results"
        keywords = data.get("keywords") or data.get("results") or []
        return keywords[0].get("name") if keywords else None

    def get_details(self, tmdb_id: str, content_type: ContentType = ContentType.MOVIE) -> Optional[MovieMetadata]:
        """Full metadata for one title, or None."""
        if not self.configured:
            logger.warning("TMDB API key not configured")
            return None
        try:
            data = self._get(f"/{self._kind(content_type)}/{tmdb_id}", language="en-US")
        except MetadataServiceError as ex:
            logger.error(f"Error fetching {content_type.value} {tmdb_id} from TMDB: {ex}")
            return None
        return parse_details(data, content_type, vibe=self.get_keyword(tmdb_id, content_type))

    def get_trailer_url(self, tmdb_id: str, content_type: ContentType = ContentType.MOVIE) -> Optional[str]:
        if not self.configured:
            return None
        try:
            data = self._get(f"/{self._kind(content_type)}/{tmdb_id}/videos", language="en-US")
        except MetadataServiceError as ex:
            logger.warning(f"TMDB videos for {content_type.value} {tmdb_id} unavailable: {ex}")
            return None
        results = data.get("results")
        return pick_trailer(results) if isinstance(results, list) else None

    def lookup(self, title: str, content_type: ContentType = ContentType.MOVIE) -> Optional[MovieMetadata]:
        """
        Best match for a title: first search hit, then its details.

        Never raises; "not found", an unconfigured key and transport errors
        all come back as None.
        """
        if not self.configured:
            logger.warning("TMDB API key not configured")
            return None
        try:
            results = self.search(title, content_type)
        except MetadataServiceError as ex:
            logger.error(f"Error searching TMDB for '{title}': {ex}")
            return None
        if not results:
            return None
        return self.get_details(str(results[0].id), content_type)

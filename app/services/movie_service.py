import logging
import random
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
from app.core import permissions
from app.models.movie import Movie, MovieStatus, ContentType
from app.repositories.movie_repository import MovieRepository
from app.schemas.movie import MovieCreate, MovieMetadata
from app.services.metadata_client import TMDBClient
from app.core.exception import ResourceNotFoundException, ValidationException

logger = logging.getLogger(__name__)


class MovieService:
    """Service layer for a household's watch list."""

    def __init__(self, db: Session, metadata_client: Optional[TMDBClient] = None):
        self.db = db
        self.movie_repo = MovieRepository(db)
        self.metadata_client = metadata_client or TMDBClient()

    def _require_member(self, household_id: int, account_id: str) -> None:
        if not permissions.can_edit_movies(self.db, household_id, account_id):
            raise ResourceNotFoundException("Household", household_id)

    def _get_visible_movie(self, movie_id: int, account_id: str) -> Movie:
        movie = self.movie_repo.get(movie_id)
        if not movie or not permissions.can_view(movie, self.db, account_id):
            raise ResourceNotFoundException("Movie", movie_id)
        return movie

    def _enrich(self, title: str, content_type: ContentType) -> Optional[MovieMetadata]:
        try:
            return self.metadata_client.lookup(title, content_type)
        except Exception as ex:
            logger.warning(f"Metadata lookup for '{title}' failed; adding without it", exc_info=ex)
            return None

    def add_movie(self, account_id: str, data: MovieCreate) -> Movie:
        """
        Add a movie or TV show to a household's watch list.

        Metadata picked from a search is used as-is; otherwise it is looked up
        by title. Lookup failures never block the add.

        Raises:
            ValidationException: If the title is empty
            ResourceNotFoundException: If the account is not a member
        """
        title = data.title.strip()
        if not title:
            raise ValidationException("Title cannot be empty", field="title")

        self._require_member(data.household_id, account_id)

        metadata = data.metadata or self._enrich(title, data.content_type)
        if metadata is None:
            logger.info(f"No metadata found for '{title}'")
            metadata = MovieMetadata()

        movie = Movie(
            household_id=data.household_id,
            added_by_id=account_id,
            title=metadata.title or title,
            status=MovieStatus.UNWATCHED,
            personal_note=data.personal_note or None,
            content_type=metadata.content_type or data.content_type,
            api_source=metadata.api_source,
            api_id=metadata.api_id,
            year=metadata.year,
            poster_url=metadata.poster_url,
            rating=metadata.rating,
            runtime_minutes=metadata.runtime_minutes,
            genres=metadata.genres,
            plot=metadata.plot,
            vibe=metadata.vibe,
        )
        return self.movie_repo.create(movie)

    def list_movies(
        self,
        household_id: int,
        account_id: str,
        status: Optional[MovieStatus] = None,
        content_type: Optional[ContentType] = None,
    ) -> List[Movie]:
        self._require_member(household_id, account_id)
        return self.movie_repo.get_by_household(household_id, status, content_type)

    def pick_random_movie(
        self,
        household_id: int,
        account_id: str,
        content_type: ContentType = ContentType.MOVIE,
    ) -> Optional[Movie]:
        """Uniformly random unwatched title of the given type, or None."""
        candidates = self.list_movies(household_id, account_id, MovieStatus.UNWATCHED, content_type)
        if not candidates:
            return None
        return random.choice(candidates)

    def update_movie_status(self, movie_id: int, status: MovieStatus, account_id: str) -> Movie:
        movie = self._get_visible_movie(movie_id, account_id)
        return self.movie_repo.update(movie.id, {"status": status})

    def delete_movie(self, movie_id: int, account_id: str) -> bool:
        movie = self._get_visible_movie(movie_id, account_id)
        return self.movie_repo.delete(movie.id)

    def get_trailer_url(self, movie_id: int, account_id: str) -> Optional[str]:
        """YouTube trailer for a TMDB-sourced title, or None."""
        movie = self._get_visible_movie(movie_id, account_id)
        if movie.api_source != "tmdb" or not movie.api_id:
            return None
        return self.metadata_client.get_trailer_url(movie.api_id, movie.content_type)

    def refresh_vibes(self, household_id: int, account_id: str) -> dict:
        """
        Fill in missing vibe tags from TMDB keywords.

        Returns:
            Dict with counts of updated titles and errors
        """
        self._require_member(household_id, account_id)

        updated = 0
        errors = 0
        for movie in self.movie_repo.get_missing_vibe(household_id):
            try:
                vibe = self.metadata_client.get_keyword(movie.api_id, movie.content_type)
            except Exception as ex:
                logger.error(f"Error fetching keywords for {movie.title}", exc_info=ex)
                errors += 1
                continue

            if not vibe:
                logger.debug(f"No keywords found for {movie.title}")
                continue

            try:
                self.movie_repo.update(movie.id, {"vibe": vibe})
                updated += 1
            except SQLAlchemyError as ex:
                self.db.rollback()
                logger.error(f"Error updating vibe for {movie.title}", exc_info=ex)
                errors += 1

        return {"updated": updated, "errors": errors}

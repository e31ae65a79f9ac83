from sqlalchemy.orm import Session
from typing import List, Optional
from app.models.movie import Movie, MovieStatus, ContentType
from app.repositories.repository import BaseRepository


class MovieRepository(BaseRepository[Movie]):
    """Repository for watch list operations."""

    def __init__(self, db: Session):
        super().__init__(Movie, db)

    def get_by_household(
        self,
        household_id: int,
        status: Optional[MovieStatus] = None,
        content_type: Optional[ContentType] = None,
    ) -> List[Movie]:
        """
        Get titles for a household, newest first.

        Args:
            household_id: Household ID
            status: Optional filter by watch status
            content_type: Optional filter by movie/tv
        """
        query = self.db.query(Movie).filter(Movie.household_id == household_id)

        if status:
            query = query.filter(Movie.status == status)

        if content_type:
            query = query.filter(Movie.content_type == content_type)

        return query.order_by(Movie.created_at.desc(), Movie.id.desc()).all()

    def get_missing_vibe(self, household_id: int) -> List[Movie]:
        """TMDB-sourced titles that have an api_id but no vibe yet."""
        return (
            self.db.query(Movie)
            .filter(
                Movie.household_id == household_id,
                Movie.api_source == "tmdb",
                Movie.api_id.isnot(None),
                Movie.vibe.is_(None),
            )
            .all()
        )

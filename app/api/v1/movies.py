from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.dependencies import get_current_user
from app.models.account import Account
from app.models.movie import MovieStatus, ContentType
from app.schemas.movie import (
    MovieCreate,
    MovieResponse,
    MovieStatusUpdate,
    SearchResult,
    VibeRefreshResult,
)
from app.schemas.result import Result
from app.services.movie_service import MovieService
from app.services.metadata_client import TMDBClient, MetadataServiceError
from app.core.exception import BadRequestException

router = APIRouter()


def get_metadata_client() -> TMDBClient:
    return TMDBClient()


@router.post("", response_model=Result[MovieResponse], status_code=status.HTTP_201_CREATED)
async def add_movie(
    movie_data: MovieCreate,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: TMDBClient = Depends(get_metadata_client)
):
    """Add a movie or TV show; metadata is looked up when not supplied."""
    service = MovieService(db, client)
    movie = service.add_movie(current_user.id, movie_data)
    return Result.successful(data=movie)


@router.get("", response_model=Result[List[MovieResponse]])
async def list_movies(
    household_id: int = Query(..., description="Household ID"),
    movie_status: Optional[MovieStatus] = Query(None, alias="status"),
    content_type: Optional[ContentType] = Query(None),
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: TMDBClient = Depends(get_metadata_client)
):
    """List a household's titles, newest first."""
    service = MovieService(db, client)
    movies = service.list_movies(household_id, current_user.id, movie_status, content_type)
    return Result.successful(data=movies)


@router.get("/random", response_model=Result[Optional[MovieResponse]])
async def pick_random_movie(
    household_id: int = Query(..., description="Household ID"),
    content_type: ContentType = Query(ContentType.MOVIE),
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: TMDBClient = Depends(get_metadata_client)
):
    """Movie night: a random unwatched title, or null when there is none."""
    service = MovieService(db, client)
    movie = service.pick_random_movie(household_id, current_user.id, content_type)
    return Result.successful(data=movie)


@router.get("/search", response_model=Result[List[SearchResult]])
async def search_titles(
    query: str = Query(..., min_length=1),
    content_type: ContentType = Query(ContentType.MOVIE),
    current_user: Account = Depends(get_current_user),
    client: TMDBClient = Depends(get_metadata_client)
):
    """Search TMDB for titles to add."""
    try:
        results = client.search(query, content_type)
    except MetadataServiceError as ex:
        raise BadRequestException(str(ex))
    return Result.successful(data=results)


@router.post("/refresh-vibes", response_model=Result[VibeRefreshResult])
async def refresh_vibes(
    household_id: int = Query(..., description="Household ID"),
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: TMDBClient = Depends(get_metadata_client)
):
    """Fill in missing vibe tags for the household's TMDB titles."""
    service = MovieService(db, client)
    result = service.refresh_vibes(household_id, current_user.id)
    return Result.successful(data=result)


@router.patch("/{movie_id}/status", response_model=Result[MovieResponse])
async def update_movie_status(
    movie_id: int,
    status_data: MovieStatusUpdate,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: TMDBClient = Depends(get_metadata_client)
):
    """Mark a title unwatched, watching or watched."""
    service = MovieService(db, client)
    movie = service.update_movie_status(movie_id, status_data.status, current_user.id)
    return Result.successful(data=movie)


@router.delete("/{movie_id}", response_model=Result[dict])
async def delete_movie(
    movie_id: int,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: TMDBClient = Depends(get_metadata_client)
):
    """Remove a title from the watch list."""
    service = MovieService(db, client)
    service.delete_movie(movie_id, current_user.id)
    return Result.successful(data={"message": "Movie deleted successfully"})


@router.get("/{movie_id}/trailer", response_model=Result[dict])
async def get_trailer(
    movie_id: int,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: TMDBClient = Depends(get_metadata_client)
):
    """YouTube trailer link for a title; null when none is known."""
    service = MovieService(db, client)
    trailer_url = service.get_trailer_url(movie_id, current_user.id)
    return Result.successful(data={"trailer_url": trailer_url})

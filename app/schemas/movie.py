from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from app.models.movie import MovieStatus, ContentType


class MovieMetadata(BaseModel):
    """Descriptive attributes from the metadata API. Every field may be missing."""
    title: Optional[str] = None
    content_type: Optional[ContentType] = None
    api_source: Optional[str] = None
    api_id: Optional[str] = None
    year: Optional[int] = None
    poster_url: Optional[str] = None
    rating: Optional[str] = None
    runtime_minutes: Optional[int] = None
    genres: Optional[str] = None
    plot: Optional[str] = None
    vibe: Optional[str] = None


class SearchResult(BaseModel):
    """One hit from a title search."""
    id: int
    title: str
    year: str
    poster_url: Optional[str] = None
    content_type: ContentType = ContentType.MOVIE


class MovieCreate(BaseModel):
    """Schema for adding a title to a household's watch list."""
    household_id: int = Field(..., description="Household ID")
    title: str = Field(..., min_length=1, max_length=300)
    personal_note: Optional[str] = Field(None, max_length=1000)
    content_type: ContentType = ContentType.MOVIE
    metadata: Optional[MovieMetadata] = Field(
        None, description="Metadata chosen from a search; looked up when omitted"
    )


class MovieStatusUpdate(BaseModel):
    status: MovieStatus = Field(..., description="New watch status")


class MovieResponse(BaseModel):
    id: int
    uuid: str
    household_id: int
    added_by_id: str
    title: str
    status: MovieStatus
    content_type: ContentType
    personal_note: Optional[str] = None
    api_source: Optional[str] = None
    api_id: Optional[str] = None
    year: Optional[int] = None
    poster_url: Optional[str] = None
    rating: Optional[str] = None
    runtime_minutes: Optional[int] = None
    genres: Optional[str] = None
    plot: Optional[str] = None
    vibe: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VibeRefreshResult(BaseModel):
    updated: int
    errors: int

from sqlalchemy import String, ForeignKey, Enum as SQLEnum, Text, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
import enum
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.household import Household
    from app.models.account import Account


class MovieStatus(str, enum.Enum):
    """Watch status of a title"""

    UNWATCHED = "unwatched"
    WATCHING = "watching"
    WATCHED = "watched"


class ContentType(str, enum.Enum):
    """Kind of title on the watch list"""

    MOVIE = "movie"
    TV = "tv"


class Movie(BaseModel):
    """
    A movie or TV show on a household's watch list.
    Metadata columns are filled best-effort from TMDB and may all be empty.
    """

    __tablename__ = "movies"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    status: Mapped[MovieStatus] = mapped_column(
        SQLEnum(MovieStatus), default=MovieStatus.UNWATCHED, nullable=False, index=True
    )
    content_type: Mapped[ContentType] = mapped_column(
        SQLEnum(ContentType), default=ContentType.MOVIE, nullable=False, index=True
    )
    personal_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    # API metadata
    api_source: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, default=None)
    api_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default=None)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    poster_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, default=None)
    rating: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, default=None)
    runtime_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    genres: Mapped[Optional[str]] = mapped_column(String(300), nullable=True, default=None)
    plot: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    vibe: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, default=None)

    # Foreign keys
    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    added_by_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    household: Mapped["Household"] = relationship(
        "Household", back_populates="movies", lazy="selectin"
    )
    added_by: Mapped["Account"] = relationship(
        "Account", foreign_keys=[added_by_id], lazy="selectin"
    )

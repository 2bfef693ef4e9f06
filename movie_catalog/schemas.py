# movie_catalog/schemas.py
from datetime import date, datetime
from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
from typing import List, Optional

# --- Movie Schemas ---
class MovieBase(BaseModel):
    imdb_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("imdb_id", "imdbId"), serialization_alias="imdbId")
    title: Optional[str] = None
    original_title: str
    adult: Optional[bool] = False
    tagline: Optional[str] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    runtime: Optional[int] = None
    release_date: Optional[date] = None
    popularity: Optional[float] = 0.0
    vote_average: Optional[float] = 0.0
    vote_count: Optional[int] = 0

    class Config:
        from_attributes = True
        populate_by_name = True

class Movie(MovieBase):
    id: int

class CastMember(BaseModel):
    name: str
    character: Optional[str] = None
    gender: Optional[int] = None

    class Config:
        from_attributes = True

class CrewMember(BaseModel):
    name: str
    job: Optional[str] = None
    department: Optional[str] = None
    gender: Optional[int] = None

    class Config:
        from_attributes = True

class MovieDetail(Movie):
    cast: List[CastMember] = []
    crew: List[CrewMember] = []
    genres: List[str] = []
    keywords: List[str] = []
    production_companies: List[str] = []
    production_countries: List[str] = []
    spoken_languages: List[str] = []

class MovieFilters(BaseModel):
    """Optional filters for the catalog listing; unset fields do not constrain."""
    search: Optional[str] = None
    genres: List[str] = []
    min_year: Optional[int] = None
    max_year: Optional[int] = None
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    min_popularity: Optional[float] = None
    max_popularity: Optional[float] = None

class MovieListResponse(BaseModel):
    movies: List[Movie]
    total_pages: int = Field(alias="totalPages")
    current_page: int = Field(alias="currentPage")
    total_movies: int = Field(alias="totalMovies")

    class Config:
        populate_by_name = True

# --- User Schemas ---
class UserCredentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

class AuthResponse(BaseModel):
    message: str
    user_id: int = Field(alias="userId")

    class Config:
        populate_by_name = True

# --- Favorite Schemas ---
class FavoriteCreate(BaseModel):
    user_id: int = Field(alias="userId", gt=0)
    movie_id: int = Field(alias="movieId", gt=0)

    class Config:
        populate_by_name = True

class Favorite(BaseModel):
    id: int
    user_id: int
    movie_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FavoriteCreated(BaseModel):
    message: str
    favorite: Favorite

class FavoritesPage(BaseModel):
    favorites: List[Movie]
    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")

    class Config:
        populate_by_name = True

# --- Import Schemas ---
class ImportRequest(BaseModel):
    imdb_id: str = Field(alias="imdbId", min_length=1)

    class Config:
        populate_by_name = True

    @field_validator("imdb_id", mode="before")
    @classmethod
    def strip_imdb_id(cls, value):
        return value.strip() if isinstance(value, str) else value

class ImportResponse(BaseModel):
    success: bool
    message: str
    movie: Optional[Movie] = None
    already_exists: Optional[bool] = Field(default=None, alias="alreadyExists")

    class Config:
        populate_by_name = True

class CheckMovieResponse(BaseModel):
    exists: bool
    movie: Optional[Movie] = None

class ValidateImdbResponse(BaseModel):
    valid: bool
    message: str

class HealthResponse(BaseModel):
    status: str
    time: str

# --- TMDB payloads ---
# Only the fields the importer stores are declared; everything else is ignored.
class TmdbNamedEntry(BaseModel):
    name: Optional[str] = None

class TmdbMovieDetails(BaseModel):
    id: int
    imdb_id: Optional[str] = None
    title: Optional[str] = None
    original_title: Optional[str] = None
    adult: bool = False
    tagline: Optional[str] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    runtime: Optional[int] = None
    release_date: Optional[date] = None
    popularity: Optional[float] = 0.0
    vote_average: Optional[float] = 0.0
    vote_count: Optional[int] = 0
    genres: List[TmdbNamedEntry] = []
    production_companies: List[TmdbNamedEntry] = []
    production_countries: List[TmdbNamedEntry] = []
    spoken_languages: List[TmdbNamedEntry] = []

    @field_validator("release_date", "tagline", "imdb_id", mode="before")
    @classmethod
    def empty_string_to_none(cls, value):
        # TMDB sends "" for unknown dates and taglines
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("genres", "production_companies", "production_countries", "spoken_languages", mode="before")
    @classmethod
    def null_list_to_empty(cls, value):
        return value or []

class TmdbCastMember(BaseModel):
    name: Optional[str] = None
    character: Optional[str] = None
    gender: Optional[int] = None

class TmdbCrewMember(BaseModel):
    name: Optional[str] = None
    job: Optional[str] = None
    department: Optional[str] = None
    gender: Optional[int] = None

class TmdbCredits(BaseModel):
    cast: List[TmdbCastMember] = []
    crew: List[TmdbCrewMember] = []

    @field_validator("cast", "crew", mode="before")
    @classmethod
    def null_list_to_empty(cls, value):
        return value or []

class TmdbKeywords(BaseModel):
    keywords: List[TmdbNamedEntry] = []

    @field_validator("keywords", mode="before")
    @classmethod
    def null_list_to_empty(cls, value):
        return value or []

    def names(self) -> List[str]:
        return [k.name for k in self.keywords if k.name]

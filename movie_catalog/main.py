# movie_catalog/main.py
from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional
import time
import logging
import contextlib # Used for async context manager for lifespan

# Import project modules
from . import auth, crud, models, schemas
from .config import get_settings
from .database import engine, get_db
from .movie_import import INVALID_IMDB_ID_MESSAGE, MovieImportService, is_valid_imdb_id
from .recommender_client import RecommenderClient, RecommenderError
from .tmdb_client import TmdbClient, TmdbConfigurationError

# API Rate Limiting setup
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

logging.basicConfig(level=logging.INFO)

settings = get_settings()

# --- Outbound clients (built once, overridable in tests) ---
@lru_cache
def get_tmdb_client() -> TmdbClient:
    return TmdbClient(
        settings.tmdb_bearer_token,
        base_url=settings.tmdb_base_url,
        language=settings.tmdb_language,
        timeout_seconds=settings.http_timeout_seconds,
    )

def get_import_service(tmdb: TmdbClient = Depends(get_tmdb_client)) -> MovieImportService:
    return MovieImportService(tmdb)

@lru_cache
def get_recommender_client() -> RecommenderClient:
    return RecommenderClient(settings.recommender_url, timeout_seconds=settings.http_timeout_seconds)

# --- Application Lifespan Management ---
@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    logging.info("Application startup...")
    models.Base.metadata.create_all(bind=engine)
    if not settings.tmdb_bearer_token:
        logging.warning("TMDB_BEARER_TOKEN is not set; movie import will fail until it is configured.")
    logging.info("Application startup complete.")
    yield # Application runs here
    # --- Shutdown ---
    logging.info("Application shutdown...")
    if get_tmdb_client.cache_info().currsize:
        get_tmdb_client().close()
    if get_recommender_client.cache_info().currsize:
        get_recommender_client().close()
    logging.info("Application shutdown complete.")

# --- FastAPI App Initialization ---
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
app = FastAPI(title="Movie Catalog API", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error rendering ---
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    if request.url.path == "/import-movie":
        return JSONResponse(status_code=400, content={"success": False, "error": "Validation failed", "details": errors})
    return JSONResponse(status_code=400, content={"errors": errors})


# --- API Endpoints ---

@app.get("/health", response_model=schemas.HealthResponse)
def health():
    return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}

# --- Auth ---
@app.post("/register", response_model=schemas.AuthResponse, status_code=201)
@limiter.limit("10/minute")
def register(request: Request, credentials: schemas.UserCredentials, db: Session = Depends(get_db)):
    try:
        user = auth.register_user(db, credentials.email, credentials.password)
    except crud.EmailAlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="Email already registered")
    except Exception as e:
        logging.error(f"Error registering user: {e}")
        raise HTTPException(status_code=500, detail="Server error")
    return schemas.AuthResponse(message="User registered", user_id=user.id)

@app.post("/login", response_model=schemas.AuthResponse)
@limiter.limit("20/minute")
def login(request: Request, credentials: schemas.UserCredentials, db: Session = Depends(get_db)):
    try:
        user = auth.authenticate_user(db, credentials.email, credentials.password)
    except Exception as e:
        logging.error(f"Error during login: {e}")
        raise HTTPException(status_code=500, detail="Server error")
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return schemas.AuthResponse(message="Login successful", user_id=user.id)

# --- Movie import ---
@app.post("/import-movie", response_model=schemas.ImportResponse)
@limiter.limit("10/minute")
def import_movie(
    request: Request,
    payload: schemas.ImportRequest,
    db: Session = Depends(get_db),
    importer: MovieImportService = Depends(get_import_service),
):
    """
    Imports a movie from TMDB by IMDb id.
    201 when newly imported, 200 when it was already in the catalog, 400 on any import failure.
    """
    logging.info(f"Received import request for imdbId={payload.imdb_id}")
    try:
        result = importer.import_movie(db, payload.imdb_id)
    except TmdbConfigurationError as e:
        logging.error(f"Movie import is not configured: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Server error during movie import"})
    except Exception as e:
        logging.error(f"Import movie error: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Server error during movie import"})

    if not result.success:
        return JSONResponse(status_code=400, content={"success": False, "message": result.message, "error": result.message})

    status_code = 200 if result.already_exists else 201
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result.to_response(), by_alias=True))

@app.get("/check-movie/{imdb_id}", response_model=schemas.CheckMovieResponse)
@limiter.limit("60/minute")
def check_movie(request: Request, imdb_id: str, db: Session = Depends(get_db)):
    if not is_valid_imdb_id(imdb_id):
        raise HTTPException(status_code=400, detail=f"Invalid IMDb ID format. {INVALID_IMDB_ID_MESSAGE}")
    try:
        movie = crud.get_movie_by_imdb_id(db, imdb_id)
    except Exception as e:
        logging.error(f"Check movie error: {e}")
        raise HTTPException(status_code=500, detail="Server error while checking movie")
    return {"exists": movie is not None, "movie": movie}

@app.get("/validate-imdb/{imdb_id}", response_model=schemas.ValidateImdbResponse)
def validate_imdb(imdb_id: str):
    valid = is_valid_imdb_id(imdb_id)
    return {"valid": valid, "message": "Valid IMDb ID format" if valid else INVALID_IMDB_ID_MESSAGE}

# --- Catalog ---
@app.get("/movies", response_model=schemas.MovieListResponse)
@limiter.limit("60/minute")
def list_movies(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(18, ge=1, le=100),
    search: Optional[str] = None,
    genres: Optional[str] = None,
    min_year: Optional[int] = Query(None, alias="minYear", ge=1, le=9999),
    max_year: Optional[int] = Query(None, alias="maxYear", ge=1, le=9999),
    min_rating: Optional[float] = Query(None, alias="minRating"),
    max_rating: Optional[float] = Query(None, alias="maxRating"),
    min_popularity: Optional[float] = Query(None, alias="minPopularity"),
    max_popularity: Optional[float] = Query(None, alias="maxPopularity"),
    db: Session = Depends(get_db),
):
    start_time = time.time()
    filters = schemas.MovieFilters(
        search=search,
        genres=[g.strip() for g in genres.split(",") if g.strip()] if genres else [],
        min_year=min_year,
        max_year=max_year,
        min_rating=min_rating,
        max_rating=max_rating,
        min_popularity=min_popularity,
        max_popularity=max_popularity,
    )
    try:
        movies, total = crud.search_movies(db, filters, page=page, limit=limit)
    except Exception as e:
        logging.error(f"Error fetching movies: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch movies")
    logging.info(f"Listed page {page} of movies ({total} matching) in {time.time() - start_time:.4f} seconds.")
    return schemas.MovieListResponse(
        movies=[schemas.Movie.model_validate(m) for m in movies],
        total_pages=crud.page_count(total, limit),
        current_page=page,
        total_movies=total,
    )

@app.get("/movies/{movie_id}", response_model=schemas.MovieDetail)
@limiter.limit("60/minute")
def read_movie(request: Request, movie_id: int, db: Session = Depends(get_db)):
    try:
        detail = crud.get_movie_detail(db, movie_id)
    except Exception as e:
        logging.error(f"Error fetching movie details: {e}")
        raise HTTPException(status_code=500, detail="Server error")
    if detail is None:
        raise HTTPException(status_code=404, detail="Movie not found")
    return detail

@app.get("/genres", response_model=List[str])
def list_genres(db: Session = Depends(get_db)):
    try:
        return crud.get_genres(db)
    except Exception as e:
        logging.error(f"Error fetching genres: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch genres")

# --- Favorites ---
@app.post("/favorites", response_model=schemas.FavoriteCreated, status_code=201)
@limiter.limit("60/minute")
def add_favorite(request: Request, payload: schemas.FavoriteCreate, db: Session = Depends(get_db)):
    if not crud.get_user(db, payload.user_id):
        raise HTTPException(status_code=404, detail=f"User with ID {payload.user_id} not found")
    if not crud.get_movie(db, payload.movie_id):
        raise HTTPException(status_code=404, detail=f"Movie with ID {payload.movie_id} not found")
    try:
        favorite = crud.add_favorite(db, payload.user_id, payload.movie_id)
    except crud.DuplicateFavoriteError:
        raise HTTPException(status_code=409, detail="Movie already in favorites")
    except Exception as e:
        logging.error(f"Error adding favorite: {e}")
        raise HTTPException(status_code=500, detail="Server error")
    return {"message": "Movie added to favorites", "favorite": favorite}

@app.delete("/favorites/{user_id}/{movie_id}")
@limiter.limit("60/minute")
def delete_favorite(request: Request, user_id: int, movie_id: int, db: Session = Depends(get_db)):
    if user_id <= 0 or movie_id <= 0:
        raise HTTPException(status_code=400, detail="userId and movieId are required")
    try:
        deleted = crud.remove_favorite(db, user_id, movie_id)
    except Exception as e:
        logging.error(f"Error removing favorite: {e}")
        raise HTTPException(status_code=500, detail="Server error")
    if not deleted:
        raise HTTPException(status_code=404, detail="Favorite not found")
    return {"message": "Movie removed from favorites"}

@app.get("/favorites/{user_id}", response_model=schemas.FavoritesPage)
@limiter.limit("60/minute")
def list_favorites(
    request: Request,
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    try:
        movies, total = crud.get_user_favorites(db, user_id, page=page, limit=limit)
    except Exception as e:
        logging.error(f"Error fetching favorites for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error")
    return schemas.FavoritesPage(
        favorites=[schemas.Movie.model_validate(m) for m in movies],
        total=total,
        page=page,
        limit=limit,
        total_pages=crud.page_count(total, limit),
    )

# --- Recommendations ---
@app.get("/recommendations/{user_id}")
@limiter.limit("10/minute")
def get_recommendations(
    request: Request,
    user_id: int,
    recommender: RecommenderClient = Depends(get_recommender_client),
):
    """Passes the recommendation service's JSON through unchanged."""
    try:
        return recommender.recommend(user_id)
    except RecommenderError as e:
        logging.error(f"Error fetching recommendations for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch recommendations")

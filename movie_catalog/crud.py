# movie_catalog/crud.py
import logging
import math
from datetime import date
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import desc, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas

logging.basicConfig(level=logging.INFO)


class DuplicateFavoriteError(Exception):
    pass


class EmailAlreadyRegisteredError(Exception):
    pass


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0

# --- User CRUD ---
def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()

def create_user(db: Session, email: str, password_hash: str) -> models.User:
    db_user = models.User(email=email, password_hash=password_hash)
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise EmailAlreadyRegisteredError(email) from e
    db.refresh(db_user)
    return db_user

# --- Movie CRUD ---
def get_movie(db: Session, movie_id: int) -> Optional[models.Movie]:
    return db.query(models.Movie).filter(models.Movie.id == movie_id).first()

def get_movie_by_imdb_id(db: Session, imdb_id: str) -> Optional[models.Movie]:
    return db.query(models.Movie).filter(models.Movie.imdb_id == imdb_id).first()

def get_movie_detail(db: Session, movie_id: int) -> Optional[schemas.MovieDetail]:
    """Movie header plus every child list, shaped for the detail page."""
    movie = get_movie(db, movie_id)
    if movie is None:
        return None

    cast = db.query(models.Cast).filter(models.Cast.movie_id == movie_id).order_by(models.Cast.name).all()
    crew = db.query(models.Crew).filter(models.Crew.movie_id == movie_id).order_by(models.Crew.name).all()
    genres = db.query(models.Genre.genre).filter(models.Genre.movie_id == movie_id).all()
    keywords = db.query(models.Keyword.keyword).filter(models.Keyword.movie_id == movie_id).limit(10).all()
    companies = db.query(models.ProductionCompany.production_company)\
                  .filter(models.ProductionCompany.movie_id == movie_id).all()
    countries = db.query(models.ProductionCountry.production_country)\
                  .filter(models.ProductionCountry.movie_id == movie_id).all()
    languages = db.query(models.SpokenLanguage.language)\
                  .filter(models.SpokenLanguage.movie_id == movie_id).all()

    header = schemas.Movie.model_validate(movie)
    return schemas.MovieDetail(
        **header.model_dump(),
        cast=[schemas.CastMember.model_validate(c) for c in cast],
        crew=[schemas.CrewMember.model_validate(c) for c in crew],
        genres=[row[0] for row in genres],
        keywords=[row[0] for row in keywords],
        production_companies=[row[0] for row in companies],
        production_countries=[row[0] for row in countries],
        spoken_languages=[row[0] for row in languages],
    )

def search_movies(db: Session, filters: schemas.MovieFilters, page: int = 1, limit: int = 18) -> Tuple[List[models.Movie], int]:
    """Filtered page of movies, most voted first. Returns (rows, total matching)."""
    query = db.query(models.Movie)

    if filters.search and filters.search.strip():
        pattern = f"%{filters.search.strip()}%"
        query = query.filter(or_(models.Movie.title.ilike(pattern), models.Movie.original_title.ilike(pattern)))

    if filters.min_year is not None:
        query = query.filter(models.Movie.release_date >= date(filters.min_year, 1, 1))
    if filters.max_year is not None:
        query = query.filter(models.Movie.release_date <= date(filters.max_year, 12, 31))

    if filters.min_rating is not None:
        query = query.filter(models.Movie.vote_average >= filters.min_rating)
    if filters.max_rating is not None:
        query = query.filter(models.Movie.vote_average <= filters.max_rating)

    if filters.min_popularity is not None:
        query = query.filter(models.Movie.popularity >= filters.min_popularity)
    if filters.max_popularity is not None:
        query = query.filter(models.Movie.popularity <= filters.max_popularity)

    # Any-of genre match via EXISTS, so a movie tagged with several requested genres appears once
    if filters.genres:
        query = query.filter(models.Movie.genres.any(models.Genre.genre.in_(filters.genres)))

    total = query.count()
    rows = query.order_by(desc(models.Movie.vote_count), desc(models.Movie.vote_average), models.Movie.id)\
                .offset((page - 1) * limit)\
                .limit(limit)\
                .all()
    return rows, total

def get_genres(db: Session) -> List[str]:
    return [row[0] for row in db.query(models.Genre.genre).distinct().order_by(models.Genre.genre).all()]

def _unique_by(entries: Iterable, key) -> list:
    """
    Keep the first entry per key; drops entries whose key is empty.
    Keys compare case-folded without trailing spaces, as the MySQL default
    collation does for the co-primary keys. Accent-only differences still collide.
    """
    seen = set()
    out = []
    for entry in entries:
        k = (key(entry) or "").rstrip().casefold()
        if not k or k in seen:
            continue
        seen.add(k)
        out.append(entry)
    return out

def build_child_rows(
    movie_id: int,
    details: schemas.TmdbMovieDetails,
    credits: schemas.TmdbCredits,
    keywords: schemas.TmdbKeywords,
) -> list:
    """Child rows for an imported movie, one per (movie, value) key."""
    rows = []
    rows += [models.Genre(movie_id=movie_id, genre=g.name)
             for g in _unique_by(details.genres, lambda g: g.name)]
    rows += [models.ProductionCompany(movie_id=movie_id, production_company=c.name)
             for c in _unique_by(details.production_companies, lambda c: c.name)]
    rows += [models.ProductionCountry(movie_id=movie_id, production_country=c.name)
             for c in _unique_by(details.production_countries, lambda c: c.name)]
    rows += [models.SpokenLanguage(movie_id=movie_id, language=l.name)
             for l in _unique_by(details.spoken_languages, lambda l: l.name)]
    rows += [models.Cast(movie_id=movie_id, name=m.name, character=m.character, gender=m.gender)
             for m in _unique_by(credits.cast, lambda m: m.name)]
    rows += [models.Crew(movie_id=movie_id, name=m.name, job=m.job, department=m.department, gender=m.gender)
             for m in _unique_by(credits.crew, lambda m: m.name)]
    rows += [models.Keyword(movie_id=movie_id, keyword=name)
             for name in _unique_by(keywords.names(), lambda name: name)]
    return rows

def save_imported_movie(
    db: Session,
    details: schemas.TmdbMovieDetails,
    credits: schemas.TmdbCredits,
    keywords: schemas.TmdbKeywords,
) -> models.Movie:
    """
    Writes the movie header and all of its child rows in one transaction.
    On any failure everything is rolled back and the error is re-raised.
    """
    db_movie = models.Movie(
        id=details.id, # TMDB id is the primary key
        imdb_id=details.imdb_id,
        title=details.title,
        original_title=details.original_title or details.title or "",
        adult=bool(details.adult),
        tagline=details.tagline,
        budget=details.budget or None,
        revenue=details.revenue or None,
        runtime=details.runtime or None,
        release_date=details.release_date,
        popularity=details.popularity or 0.0,
        vote_average=details.vote_average or 0.0,
        vote_count=details.vote_count or 0,
    )
    try:
        db.add(db_movie)
        db.flush() # header insert fails here on a duplicate primary key
        db.add_all(build_child_rows(db_movie.id, details, credits, keywords))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Rolled back import of TMDB movie {details.id} ({details.imdb_id}): {e}")
        raise
    db.refresh(db_movie)
    return db_movie

# --- Favorite CRUD ---
def add_favorite(db: Session, user_id: int, movie_id: int) -> models.Favorite:
    existing = db.query(models.Favorite).filter(
        models.Favorite.user_id == user_id,
        models.Favorite.movie_id == movie_id
    ).first()
    if existing:
        raise DuplicateFavoriteError(f"user {user_id} already favorited movie {movie_id}")

    db_favorite = models.Favorite(user_id=user_id, movie_id=movie_id)
    db.add(db_favorite)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateFavoriteError(f"user {user_id} already favorited movie {movie_id}") from e
    db.refresh(db_favorite)
    return db_favorite

def remove_favorite(db: Session, user_id: int, movie_id: int) -> bool:
    """Returns False when there was nothing to delete."""
    deleted = db.query(models.Favorite).filter(
        models.Favorite.user_id == user_id,
        models.Favorite.movie_id == movie_id
    ).delete(synchronize_session=False)
    db.commit()
    return deleted > 0

def get_user_favorites(db: Session, user_id: int, page: int = 1, limit: int = 20) -> Tuple[List[models.Movie], int]:
    query = db.query(models.Movie)\
              .join(models.Favorite, models.Favorite.movie_id == models.Movie.id)\
              .filter(models.Favorite.user_id == user_id)
    total = query.count()
    rows = query.order_by(desc(models.Favorite.created_at), desc(models.Favorite.id))\
                .offset((page - 1) * limit)\
                .limit(limit)\
                .all()
    return rows, total

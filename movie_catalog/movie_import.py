# movie_catalog/movie_import.py
import logging
import re
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .tmdb_client import TmdbClient, TmdbClientError

logging.basicConfig(level=logging.INFO)

IMDB_ID_PATTERN = re.compile(r"^tt\d{7,}$")
INVALID_IMDB_ID_MESSAGE = 'Invalid IMDb ID. It must be at least 9 characters long and start with "tt".'


def is_valid_imdb_id(imdb_id) -> bool:
    """True for "tt" followed by at least seven digits."""
    if not imdb_id or not isinstance(imdb_id, str):
        return False
    return len(imdb_id) >= 9 and imdb_id.startswith("tt") and IMDB_ID_PATTERN.match(imdb_id) is not None


class MovieImportError(Exception):
    """A failed import step; the message is safe to show to clients."""


@dataclass
class ImportResult:
    success: bool
    message: str
    movie: Optional[models.Movie] = None
    already_exists: Optional[bool] = None

    def to_response(self) -> schemas.ImportResponse:
        return schemas.ImportResponse(
            success=self.success,
            message=self.message,
            movie=schemas.Movie.model_validate(self.movie) if self.movie is not None else None,
            already_exists=self.already_exists,
        )


class MovieImportService:
    """
    Imports one movie by IMDb id: validate, check the local catalog, resolve the
    TMDB id, fetch details/credits/keywords concurrently, then persist everything
    in a single transaction. The first failure ends the import.
    """

    def __init__(self, tmdb: TmdbClient, max_workers: int = 3):
        self.tmdb = tmdb
        self.max_workers = max_workers

    def check_existing(self, db: Session, imdb_id: str) -> Tuple[bool, Optional[models.Movie]]:
        movie = crud.get_movie_by_imdb_id(db, imdb_id)
        return movie is not None, movie

    def fetch_all(self, tmdb_id: int) -> Tuple[schemas.TmdbMovieDetails, schemas.TmdbCredits, schemas.TmdbKeywords]:
        """Runs the three lookups in parallel; re-raises the first failure without waiting for the rest."""
        pool = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = [
                pool.submit(self.tmdb.fetch_movie_details, tmdb_id),
                pool.submit(self.tmdb.fetch_movie_credits, tmdb_id),
                pool.submit(self.tmdb.fetch_movie_keywords, tmdb_id),
            ]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for fut in futures:
                if fut in done and fut.exception() is not None:
                    raise fut.exception()
            details, credits, keywords = (fut.result() for fut in futures)
            return details, credits, keywords
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def import_movie(self, db: Session, imdb_id: str) -> ImportResult:
        start_time = time.time()

        # Step 1: validate
        if not is_valid_imdb_id(imdb_id):
            return ImportResult(success=False, message=INVALID_IMDB_ID_MESSAGE)

        # Step 2: already imported?
        exists, existing = self.check_existing(db, imdb_id)
        if exists:
            logging.info(f"Movie {imdb_id} already in catalog as {existing.id}; skipping import.")
            return ImportResult(success=True, message="Movie already exists in database",
                                movie=existing, already_exists=True)

        try:
            # Step 3: resolve TMDB id
            try:
                tmdb_id = self.tmdb.find_by_imdb_id(imdb_id)
            except TmdbClientError as e:
                raise MovieImportError("Failed to find movie in TMDB") from e
            if tmdb_id is None:
                return ImportResult(success=False, message="Movie not found in TMDB database")

            # Step 4: details, credits and keywords
            try:
                details, credits, keywords = self.fetch_all(tmdb_id)
            except TmdbClientError as e:
                raise MovieImportError("Failed to fetch movie data from TMDB") from e

            # Step 5: persist
            try:
                movie = crud.save_imported_movie(db, details, credits, keywords)
            except IntegrityError as e:
                # Another request may have imported the same movie since step 2
                exists, existing = self.check_existing(db, imdb_id)
                if exists:
                    logging.warning(f"Concurrent import of {imdb_id} detected; returning stored movie {existing.id}.")
                    return ImportResult(success=True, message="Movie already exists in database",
                                        movie=existing, already_exists=True)
                raise MovieImportError("Failed to save movie to database") from e
            except SQLAlchemyError as e:
                raise MovieImportError("Failed to save movie to database") from e
        except MovieImportError as e:
            logging.error(f"Import of {imdb_id} failed: {e} ({e.__cause__})")
            return ImportResult(success=False, message=str(e))

        logging.info(f"Imported {imdb_id} as TMDB movie {movie.id} in {time.time() - start_time:.4f} seconds.")
        return ImportResult(success=True, message="Movie imported successfully", movie=movie, already_exists=False)

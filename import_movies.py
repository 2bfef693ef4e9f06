# import_movies.py
import sys
import logging
import time
from typing import List
from movie_catalog.config import get_settings
from movie_catalog.database import SessionLocal, engine, Base
from movie_catalog.movie_import import MovieImportService
from movie_catalog.tmdb_client import TmdbClient, TmdbConfigurationError

logging.basicConfig(level=logging.INFO)

DATA_DIR = 'data'
IDS_FILE = f'{DATA_DIR}/imdb_ids.txt'

def read_imdb_ids(path: str) -> List[str]:
    """One IMDb id per line; blank lines and '#' comments are skipped, duplicates dropped."""
    ids = []
    seen = set()
    with open(path, encoding='utf-8') as f:
        for line in f:
            value = line.split('#', 1)[0].strip()
            if value and value not in seen:
                seen.add(value)
                ids.append(value)
    return ids

def import_all(db, importer: MovieImportService, imdb_ids: List[str]) -> dict:
    counts = {"imported": 0, "existing": 0, "failed": 0}
    for imdb_id in imdb_ids:
        result = importer.import_movie(db, imdb_id)
        if not result.success:
            counts["failed"] += 1
            logging.warning(f"{imdb_id}: {result.message}")
        elif result.already_exists:
            counts["existing"] += 1
        else:
            counts["imported"] += 1
            logging.info(f"{imdb_id}: imported as {result.movie.id} ({result.movie.original_title})")
    return counts

def main(path: str = IDS_FILE) -> int:
    logging.info("Initializing database...")
    Base.metadata.create_all(bind=engine) # Create tables if they don't exist

    try:
        imdb_ids = read_imdb_ids(path)
    except FileNotFoundError:
        logging.error(f"IMDb id file not found: {path}")
        return 1

    settings = get_settings()
    tmdb = TmdbClient(
        settings.tmdb_bearer_token,
        base_url=settings.tmdb_base_url,
        language=settings.tmdb_language,
        timeout_seconds=settings.http_timeout_seconds,
    )
    importer = MovieImportService(tmdb)

    db = SessionLocal()
    start_time = time.time()
    try:
        counts = import_all(db, importer, imdb_ids)
    except TmdbConfigurationError as e:
        logging.error(f"Cannot import movies: {e}")
        return 1
    finally:
        db.close()
        tmdb.close()
        logging.info("Database session closed.")

    logging.info(
        f"Processed {len(imdb_ids)} ids in {time.time() - start_time:.2f} seconds: "
        f"{counts['imported']} imported, {counts['existing']} already present, {counts['failed']} failed."
    )
    return 0 if counts["failed"] == 0 else 2

if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else IDS_FILE))

# movie_catalog/auth.py
import logging
from typing import Optional
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from . import crud, models
from .config import get_settings

logging.basicConfig(level=logging.INFO)


def hash_password(password: str, method: Optional[str] = None) -> str:
    """Salted one-way hash; the method string carries the cost factor."""
    return generate_password_hash(password, method=method or get_settings().password_hash_method)


def register_user(db: Session, email: str, password: str) -> models.User:
    """Raises crud.EmailAlreadyRegisteredError when the email is taken."""
    if crud.get_user_by_email(db, email):
        raise crud.EmailAlreadyRegisteredError(email)
    user = crud.create_user(db, email=email, password_hash=hash_password(password))
    logging.info(f"Registered user {user.id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[models.User]:
    """Returns the user when the credentials match, otherwise None."""
    user = crud.get_user_by_email(db, email)
    if user is None:
        return None
    # check_password_hash compares in constant time
    if not check_password_hash(user.password_hash, password):
        return None
    return user

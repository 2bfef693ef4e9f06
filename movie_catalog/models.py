# movie_catalog/models.py
from sqlalchemy import Column, Integer, String, Float, ForeignKey, BigInteger, DateTime, Date, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    favorites = relationship("Favorite", back_populates="user")

class Movie(Base):
    __tablename__ = "movies"
    # Primary key is the external catalog's numeric id, never generated locally
    id = Column("movie_id", Integer, primary_key=True, autoincrement=False)
    imdb_id = Column(String(16), unique=True, index=True, nullable=True)
    title = Column(String(255), index=True, nullable=True)
    original_title = Column(String(255), nullable=False)
    adult = Column(Boolean, default=False)
    tagline = Column(String(500), nullable=True)
    budget = Column(BigInteger, nullable=True)
    revenue = Column(BigInteger, nullable=True)
    runtime = Column(Integer, nullable=True)
    release_date = Column(Date, nullable=True)
    popularity = Column(Float, default=0.0)
    vote_average = Column(Float, default=0.0)
    vote_count = Column(Integer, default=0)

    # Child rows are owned by the movie; all of them are written in the import transaction
    cast = relationship("Cast", back_populates="movie", cascade="all, delete-orphan")
    crew = relationship("Crew", back_populates="movie", cascade="all, delete-orphan")
    genres = relationship("Genre", back_populates="movie", cascade="all, delete-orphan")
    keywords = relationship("Keyword", back_populates="movie", cascade="all, delete-orphan")
    production_companies = relationship("ProductionCompany", back_populates="movie", cascade="all, delete-orphan")
    production_countries = relationship("ProductionCountry", back_populates="movie", cascade="all, delete-orphan")
    spoken_languages = relationship("SpokenLanguage", back_populates="movie", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="movie")

class Cast(Base):
    __tablename__ = "cast"
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), primary_key=True)
    name = Column(String(255), primary_key=True)
    character = Column(String(255), nullable=True)
    gender = Column(Integer, nullable=True) # 0 unspecified, 1 female, 2 male, 3 non-binary

    movie = relationship("Movie", back_populates="cast")

class Crew(Base):
    __tablename__ = "crew"
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), primary_key=True)
    name = Column(String(255), primary_key=True)
    job = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    gender = Column(Integer, nullable=True)

    movie = relationship("Movie", back_populates="crew")

class Genre(Base):
    __tablename__ = "genres"
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), primary_key=True)
    genre = Column(String(50), primary_key=True, index=True)

    movie = relationship("Movie", back_populates="genres")

class Keyword(Base):
    __tablename__ = "keywords"
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), primary_key=True)
    keyword = Column(String(100), primary_key=True)

    movie = relationship("Movie", back_populates="keywords")

class ProductionCompany(Base):
    __tablename__ = "production_companies"
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), primary_key=True)
    production_company = Column(String(255), primary_key=True)

    movie = relationship("Movie", back_populates="production_companies")

class ProductionCountry(Base):
    __tablename__ = "production_countries"
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), primary_key=True)
    production_country = Column(String(255), primary_key=True)

    movie = relationship("Movie", back_populates="production_countries")

class SpokenLanguage(Base):
    __tablename__ = "spoken_languages"
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), primary_key=True)
    language = Column(String(255), primary_key=True)

    movie = relationship("Movie", back_populates="spoken_languages")

class Favorite(Base):
    __tablename__ = "favorites"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    movie_id = Column(Integer, ForeignKey("movies.movie_id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'movie_id', name='uq_user_movie'),
    )

    user = relationship("User", back_populates="favorites")
    movie = relationship("Movie", back_populates="favorites")

# movie_catalog/__init__.py

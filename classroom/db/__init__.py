"""Database package"""

from classroom.db.session import AsyncSessionLocal, engine, get_db
from classroom.models.base import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db"]

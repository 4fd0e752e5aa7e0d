from .session import AsyncSessionLocal, Base, engine, get_db, get_session_factory

__all__ = ["AsyncSessionLocal", "Base", "engine", "get_db", "get_session_factory"]

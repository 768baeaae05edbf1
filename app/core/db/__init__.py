from .base import Base, engine, async_session_maker, get_session

__all__ = ["Base", "engine", "async_session_maker", "get_session"]

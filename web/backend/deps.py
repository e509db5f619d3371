from typing import Optional

from loguru import logger

from trackdrop.context import AppContext
from trackdrop.core.config import ensure_directories, load_config

_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """FastAPI dependency for the process-wide AppContext."""
    global _context
    if _context is None:
        config = load_config()
        ensure_directories(config)
        _context = AppContext.create(config)
        logger.info(f"Web API using library at {config.library.path}")
    return _context


async def close_app_context() -> None:
    """Release the AppContext's HTTP client, if one was created."""
    global _context
    if _context is not None:
        await _context.aclose()
        _context = None

"""
Dependency injection for the research engine and settings.
"""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from content_research.research.engine import ResearchEngine

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> ResearchEngine:
    """
    Returns the engine built during application startup.
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        logger.error("Research engine requested before application startup finished")
        raise HTTPException(status_code=503, detail="Research engine is not ready")
    return engine


# Type aliases for dependency injection
Engine = Annotated[ResearchEngine, Depends(get_engine)]

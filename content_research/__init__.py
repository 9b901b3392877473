"""
Content research engine.

This package is intended to hold code that is reused across:
- the FastAPI app in `api/`
- command-line scripts in `scripts/`

App entrypoints (FastAPI routers, CLI scripts) should live outside this package and
import from `content_research` rather than the other way around.
"""

__version__ = "1.0.0"

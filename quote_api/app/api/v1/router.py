"""
Top‑level router for version 1 of the API.
"""

from fastapi import APIRouter

from .endpoints import quotes

router = APIRouter()

# The quotes router defines its own "/quote" and "/quotes" paths.
router.include_router(quotes.router, tags=["quotes"])

from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.health import router as health_router
from app.api.routes.species import router as species_router

__all__ = ["admin_router", "health_router", "species_router"]

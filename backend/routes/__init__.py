# backend/routes/__init__.py
"""Router registry.

Single source of truth for FastAPI route inclusion.

Guidelines:
- Keep this list deterministic and explicit.
- Each router must be mounted exactly once (no duplicates).
"""

from __future__ import annotations

from backend.routes.admin_routes import router as admin_router
from backend.routes.diag_routes import router as diag_router
from backend.routes.submission_routes import router as submission_router

# Deterministic inclusion order:
# 1) Diagnostics
# 2) Public submission intake
# 3) Admin review
routers = [
    diag_router,
    submission_router,
    admin_router,
]

__all__ = ["routers"]

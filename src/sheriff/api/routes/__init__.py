"""
API route modules.
"""

from sheriff.api.routes.admin import router as admin_router
from sheriff.api.routes.audit import router as audit_router
from sheriff.api.routes.auth import router as auth_router
from sheriff.api.routes.cases import router as cases_router
from sheriff.api.routes.dashboard import router as dashboard_router
from sheriff.api.routes.fines import router as fines_router
from sheriff.api.routes.jail import router as jail_router
from sheriff.api.routes.laws import router as laws_router
from sheriff.api.routes.notes import router as notes_router
from sheriff.api.routes.persons import router as persons_router
from sheriff.api.routes.tasks import router as tasks_router
from sheriff.api.routes.users import router as users_router
from sheriff.api.routes.weapons import router as weapons_router

__all__ = [
    "admin_router",
    "audit_router",
    "auth_router",
    "cases_router",
    "dashboard_router",
    "fines_router",
    "jail_router",
    "laws_router",
    "notes_router",
    "persons_router",
    "tasks_router",
    "users_router",
    "weapons_router",
]

"""
HTML routes.

Pages and auth live at the root; project management under /projects.
"""

from fastapi import APIRouter

from . import auth, pages, projects

router = APIRouter()

router.include_router(pages.router, tags=["Pages"])
router.include_router(auth.router, tags=["Authentication"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])

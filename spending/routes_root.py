# routes_root.py
"""
Root / basic endpoints (landing).
"""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

router = APIRouter()


@router.get("/")
def read_root():
    """
    Landing endpoint: the dashboard is the home page.
    """
    return RedirectResponse(url="/dashboard", status_code=302)

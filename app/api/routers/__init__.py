"""
app/api/routers package marker.
"""

from app.api.routers.agriculture import router as agriculture_router
from app.api.routers.domains import router as domains_router

__all__ = [
    "agriculture_router",
    "domains_router",
]

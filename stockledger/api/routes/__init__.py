"""API route modules."""

from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.materials import router as materials_router
from stockledger.api.routes.reports import router as reports_router
from stockledger.api.routes.transactions import router as transactions_router

__all__ = [
    "health_router",
    "materials_router",
    "transactions_router",
    "reports_router",
]

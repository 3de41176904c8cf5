from .router import router
from .service import BusSearchService

__all__ = ["router", "BusSearchService"]

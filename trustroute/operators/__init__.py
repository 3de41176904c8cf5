from .router import router
from .service import OperatorService

__all__ = ["router", "OperatorService"]

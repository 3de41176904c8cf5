from .router import router, user_router
from .dependencies import get_current_user, get_optional_user, get_settings, require_admin_key

__all__ = ["router", "user_router", "get_current_user", "get_optional_user", "get_settings", "require_admin_key"]

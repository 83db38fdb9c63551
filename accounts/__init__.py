"""Sign up, log in and log out (Supabase Auth with a local SQL fallback)."""

from .routes import accounts_blueprint
from .service import get_current_user

__all__ = ["accounts_blueprint", "get_current_user"]

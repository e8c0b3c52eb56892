from .auth import authenticate_token, create_session_token, require_admin

__all__ = ["authenticate_token", "create_session_token", "require_admin"]

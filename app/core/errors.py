from typing import Any, Dict, Optional


class ServiceError(Exception):
    """
    Base for errors raised by services.
    Carries an i18n message key; the HTTP layer renders it per request locale.
    """
    status_code = 500

    def __init__(self, key: str, extra: Optional[Dict[str, Any]] = None, **params: Any):
        super().__init__(key)
        self.key = key
        self.params = params
        self.extra = extra or {}


class ValidationError(ServiceError):
    status_code = 400


class AuthError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class UpstreamError(ServiceError):
    """Gateway, database, mail or analytics call failed"""
    status_code = 500

    def __init__(self, key: str, setup_required: Optional[bool] = None, **params: Any):
        extra = {"setupRequired": setup_required} if setup_required is not None else None
        super().__init__(key, extra=extra, **params)

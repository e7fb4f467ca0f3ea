"""
Service-layer error taxonomy.

Every error carries the HTTP status it maps to and a single human-readable
message. The app renders them as {"error": message}.
"""


class ServiceError(Exception):
    """Base class for errors raised by the service layer"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed, missing or out-of-range input"""

    status_code = 400


class AuthError(ServiceError):
    """Missing, invalid or expired credential"""

    status_code = 401


class ForbiddenError(ServiceError):
    """Authenticated but not allowed to touch this resource"""

    status_code = 403


class NotFoundError(ServiceError):
    """Referenced resource does not exist"""

    status_code = 404


class ConflictError(ServiceError):
    """Uniqueness violation"""

    status_code = 400


class ConfigError(ServiceError):
    """Required external configuration is absent"""

    status_code = 500


class UpstreamError(ServiceError):
    """A dependent service (object storage, proxied origin) failed"""

    status_code = 500

class ServiceDeskException(Exception):
    """Base exception for the service desk API"""

    pass


class UnauthorizedException(ServiceDeskException):
    """Raised when JWT validation fails or no identity can be resolved"""

    pass


class NotFoundException(ServiceDeskException):
    """Raised when resource not found"""

    pass


class ForbiddenException(ServiceDeskException):
    """Raised when an identity is resolved but holds no matching grant"""

    pass


class ValidationException(ServiceDeskException):
    """Raised for business logic validation errors"""

    pass


class ConflictException(ServiceDeskException):
    """Raised when a row would duplicate an existing unique grant or link"""

    pass

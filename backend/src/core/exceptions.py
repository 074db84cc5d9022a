"""
Custom Exception Hierarchy
Domain and application-level exceptions
"""


class DomainException(Exception):
    """Base exception for all domain errors"""
    pass


class AuthenticationException(DomainException):
    """Authentication failed"""
    pass


class AuthorizationException(DomainException):
    """User not authorized for this operation"""
    pass


class ValidationException(DomainException):
    """Data validation failed"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ResourceNotFoundException(DomainException):
    """Requested resource not found"""

    def __init__(self, resource_type: str, identifier: str):
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(f"{resource_type} not found: {identifier}")


class ConflictException(DomainException):
    """Operation conflicts with the current state of a resource"""
    pass


class DuplicateResourceException(ConflictException):
    """Resource already exists"""

    def __init__(self, resource_type: str, field: str, value: str):
        self.resource_type = resource_type
        self.field = field
        self.value = value
        super().__init__(f"{resource_type} with {field}='{value}' already exists")


class InactiveJobOfferException(ConflictException):
    """Job offer is not open for the requested change"""

    def __init__(self, job_offer_id: str, status: str):
        self.job_offer_id = job_offer_id
        self.status = status
        super().__init__(f"Job offer {job_offer_id} is not open (status={status})")


class UpstreamException(DomainException):
    """A backing service (database, event bus) failed"""
    pass


class RepositoryException(UpstreamException):
    """Database operation failed"""
    pass


class EventBusException(UpstreamException):
    """Publishing to or consuming from the event bus failed"""
    pass

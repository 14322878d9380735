"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - VersionedMixin: Version counter bumped on every save

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling
    - ErrorCode: Failure codes shared by every service

Exceptions (import from core.exceptions):
    - BaseApplicationError and its subclasses (ConflictError,
      ExternalServiceError, PersistenceError)

Permissions (import from core.permissions):
    - IsPlatformAdmin: Gate an endpoint to platform administrators

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
    - service_failure_response: ServiceResult failure -> DRF Response
    - api_exception_handler: DRF handler for BaseApplicationError
"""

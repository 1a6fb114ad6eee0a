"""
Platform-wide exception hierarchy.

Services raise these canonical types; blueprints map them to HTTP status
codes once (see grc.blueprints.register_error_handlers) and get consistent
responses everywhere.

Usage:
    from grc.core.exceptions import NotFoundError, MissingTenantError

    raise NotFoundError(resource="Assessment", resource_id=assessment_id)
    raise MissingTenantError(user_id=principal.user_id)
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the given scope.

    Security note: Used for BOTH genuinely missing records AND cross-tenant
    access attempts. A 403 would confirm the resource exists; a 404 does not.

    Args:
        resource: Human-readable model/entity name (e.g. "Assessment").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
        tenant_id: Optional: the scope that was enforced. For debug logging only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        tenant_id: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.tenant_id = tenant_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if tenant_id is not None:
            msg += f" (tenant={tenant_id})"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails business-rule validation in the service layer.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would create a duplicate unique constraint violation.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class AccessDeniedError(Exception):
    """Raised when the caller is known but not allowed to perform the action.

    Only used where the target's existence is already visible to the caller
    (e.g. writing to a shared standard framework). Maps to HTTP 403.
    """


# ═══════════════════════════════════════════════════════════════
# Tenant scope errors: always fail closed, never fall back
# ═══════════════════════════════════════════════════════════════

class TenantScopeError(Exception):
    """Base class for effective-scope failures. Maps to HTTP 403."""

    def __init__(self, message: str, user_id: str | None = None) -> None:
        self.user_id = user_id
        super().__init__(message)


class MissingTenantError(TenantScopeError):
    """Raised when a scope needs a concrete tenant and none is available.

    For ordinary users this means the identity carries no tenant; the data
    operation must be blocked rather than run unscoped.
    """

    def __init__(self, message: str = "No tenant is associated with this principal",
                 user_id: str | None = None) -> None:
        super().__init__(message, user_id=user_id)


class InvalidTenantSentinelError(MissingTenantError):
    """Raised when a placeholder (e.g. "default") is found instead of a tenant id."""

    def __init__(self, value: str, user_id: str | None = None) -> None:
        self.value = value
        super().__init__(f"Placeholder tenant value {value!r} is not a tenant identifier",
                         user_id=user_id)


class OrphanedResponseError(Exception):
    """The owning assessment of a response could not be resolved.

    Internal to the progress aggregator: logged and swallowed so the response
    write that triggered recomputation still succeeds.
    """

    def __init__(self, assessment_id: str | None) -> None:
        self.assessment_id = assessment_id
        super().__init__(f"Assessment id={assessment_id} not found for progress recompute")

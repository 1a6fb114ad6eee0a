"""
Effective tenant resolution.

Every data operation is parameterised by an EffectiveScope computed from
two inputs:

    Principal       : who is calling (from the identity provider's token)
    TenantSelection : which tenant a platform admin chose to view

Resolution rules:
    platform admin + selection      → scope = selected tenant
    platform admin, no selection    → unrestricted (explicit, no tenant filter)
    ordinary user                   → scope = principal.tenant_id
    ordinary user without a tenant  → MissingTenantError (fail closed)
    placeholder tenant ("default")  → InvalidTenantSentinelError (fail closed)

resolve_scope() is pure: no I/O, no globals. The sentinel set is passed in
(callers read it from app config) so tests can exercise any combination.
"""

from dataclasses import dataclass, field

from grc.core.exceptions import InvalidTenantSentinelError, MissingTenantError

DEFAULT_SENTINELS = frozenset({"default"})

PLATFORM_ADMIN_ROLE = "platform_admin"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as supplied by the identity provider."""

    user_id: str
    tenant_id: str | None = None
    roles: frozenset = field(default_factory=frozenset)
    is_platform_admin: bool = False

    @classmethod
    def from_claims(cls, claims: dict) -> "Principal":
        """Build a Principal from decoded access-token claims."""
        raw_roles = claims.get("roles") or []
        if isinstance(raw_roles, str):
            raw_roles = [raw_roles]
        roles = frozenset(raw_roles)
        return cls(
            user_id=str(claims.get("sub")),
            tenant_id=claims.get("tenant_id"),
            roles=roles,
            is_platform_admin=bool(claims.get("is_platform_admin")) or PLATFORM_ADMIN_ROLE in roles,
        )


@dataclass(frozen=True)
class TenantSelection:
    """Platform-admin tenant override. Empty means "no selection"."""

    selected_tenant_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return _blank(self.selected_tenant_id)


@dataclass(frozen=True)
class EffectiveScope:
    """Tenant filter actually applied to a data operation."""

    tenant_id: str | None
    is_unrestricted: bool = False

    def require_tenant(self) -> str:
        """Return the concrete tenant id or raise MissingTenantError.

        Write paths always need a concrete tenant, even for platform admins.
        """
        if self.tenant_id is None:
            raise MissingTenantError("A concrete tenant must be selected for this operation")
        return self.tenant_id

    def to_dict(self) -> dict:
        return {"tenant_id": self.tenant_id, "is_unrestricted": self.is_unrestricted}


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def is_sentinel(value: str | None, sentinels=DEFAULT_SENTINELS) -> bool:
    """True if value is a placeholder rather than a real tenant identifier."""
    if value is None:
        return False
    return str(value).strip().lower() in sentinels


def resolve_scope(
    principal: Principal,
    selection: TenantSelection | None = None,
    *,
    sentinels=DEFAULT_SENTINELS,
) -> EffectiveScope:
    """Combine identity and admin selection into one effective scope.

    Raises:
        InvalidTenantSentinelError: The principal's tenant (or an admin's
            selection) is a placeholder value.
        MissingTenantError: A non-admin principal has no tenant.
    """
    selection = selection or TenantSelection()

    if principal.is_platform_admin:
        if selection.is_empty:
            return EffectiveScope(tenant_id=None, is_unrestricted=True)
        selected = selection.selected_tenant_id.strip()
        if is_sentinel(selected, sentinels):
            raise InvalidTenantSentinelError(selected, user_id=principal.user_id)
        return EffectiveScope(tenant_id=selected, is_unrestricted=False)

    tenant_id = principal.tenant_id
    if _blank(tenant_id):
        raise MissingTenantError(user_id=principal.user_id)
    tenant_id = str(tenant_id).strip()
    if is_sentinel(tenant_id, sentinels):
        raise InvalidTenantSentinelError(tenant_id, user_id=principal.user_id)
    return EffectiveScope(tenant_id=tenant_id, is_unrestricted=False)

"""
GreenPantry API — Authorization policy

One table maps each protected operation to the roles that may perform it
and whether the owner of the resource may perform it regardless of role.
Routers never compare roles themselves; they call authorize() (or depend on
require()) with the operation name and, where relevant, the owner id.
"""
from dataclasses import dataclass

from app.core.exceptions import NotAuthorized
from app.core.security import CurrentUser
from app.models.user import UserRole

ANY_ROLE = frozenset(UserRole)


@dataclass(frozen=True)
class Rule:
    roles: frozenset[UserRole] = frozenset()
    owner: bool = False
    # When set, ownership only counts for callers holding one of these roles
    owner_roles: frozenset[UserRole] | None = None


POLICY: dict[str, Rule] = {
    "order:create": Rule(roles=ANY_ROLE),
    "order:read": Rule(roles=frozenset({UserRole.ADMIN, UserRole.VENDOR}), owner=True),
    "order:list_by_user": Rule(roles=frozenset({UserRole.ADMIN})),
    "order:list_by_restaurant": Rule(roles=frozenset({UserRole.VENDOR, UserRole.ADMIN})),
    "order:update_status": Rule(
        roles=frozenset({UserRole.VENDOR, UserRole.ADMIN, UserRole.DELIVERY})
    ),
    # ownership of the order itself is checked by OrderService.cancel
    "order:cancel": Rule(roles=ANY_ROLE),
    "order:track": Rule(
        roles=frozenset({UserRole.ADMIN, UserRole.VENDOR, UserRole.DELIVERY}), owner=True
    ),
    "restaurant:create": Rule(roles=frozenset({UserRole.VENDOR, UserRole.ADMIN})),
    "restaurant:list_own": Rule(roles=frozenset({UserRole.VENDOR, UserRole.ADMIN})),
    "restaurant:write": Rule(
        roles=frozenset({UserRole.ADMIN}), owner=True, owner_roles=frozenset({UserRole.VENDOR})
    ),
    "menu:write": Rule(
        roles=frozenset({UserRole.ADMIN}), owner=True, owner_roles=frozenset({UserRole.VENDOR})
    ),
    "payment:create": Rule(roles=frozenset({UserRole.ADMIN}), owner=True),
    "payment:manage": Rule(roles=ANY_ROLE),
    "payment:refund": Rule(roles=frozenset({UserRole.ADMIN, UserRole.VENDOR})),
    "profile:manage": Rule(roles=ANY_ROLE),
}


def _role(user: CurrentUser) -> UserRole | None:
    try:
        return UserRole(user.role)
    except ValueError:
        return None


def is_allowed(operation: str, user: CurrentUser, owner_id: str | None = None) -> bool:
    rule = POLICY[operation]
    role = _role(user)
    if role is not None and role in rule.roles:
        return True
    if rule.owner and owner_id is not None and owner_id == user.id:
        return rule.owner_roles is None or role in rule.owner_roles
    return False


def authorize(operation: str, user: CurrentUser, owner_id: str | None = None) -> None:
    if not is_allowed(operation, user, owner_id):
        raise NotAuthorized()

import pytest

from app.core.exceptions import NotAuthorized
from app.core.policy import POLICY, authorize, is_allowed
from app.core.security import CurrentUser
from app.models.user import UserRole


def caller(role: UserRole, id: str = "u1") -> CurrentUser:
    return CurrentUser(id=id, email=f"{id}@greenpantry.example.com", role=role.value)


@pytest.mark.parametrize(
    "operation, role, allowed",
    [
        ("order:create", UserRole.USER, True),
        ("order:list_by_user", UserRole.USER, False),
        ("order:list_by_user", UserRole.ADMIN, True),
        ("order:list_by_restaurant", UserRole.VENDOR, True),
        ("order:list_by_restaurant", UserRole.DELIVERY, False),
        ("order:update_status", UserRole.DELIVERY, True),
        ("order:update_status", UserRole.USER, False),
        ("restaurant:create", UserRole.VENDOR, True),
        ("restaurant:create", UserRole.USER, False),
        ("restaurant:list_own", UserRole.VENDOR, True),
        ("restaurant:list_own", UserRole.USER, False),
        ("payment:refund", UserRole.USER, False),
        ("payment:refund", UserRole.VENDOR, True),
    ],
)
def test_role_rules(operation, role, allowed):
    assert is_allowed(operation, caller(role)) is allowed


def test_owner_reads_own_order_only():
    user = caller(UserRole.USER, id="owner")
    assert is_allowed("order:read", user, owner_id="owner")
    assert not is_allowed("order:read", user, owner_id="someone-else")


def test_vendor_ownership_required_for_restaurant_writes():
    vendor = caller(UserRole.VENDOR, id="v1")
    assert is_allowed("restaurant:write", vendor, owner_id="v1")
    assert not is_allowed("restaurant:write", vendor, owner_id="v2")
    assert is_allowed("restaurant:write", caller(UserRole.ADMIN), owner_id="v2")


def test_owner_without_vendor_role_cannot_edit_menu():
    user = caller(UserRole.USER, id="u1")
    assert not is_allowed("menu:write", user, owner_id="u1")


def test_unknown_role_gets_nothing():
    ghost = CurrentUser(id="g", email="", role="Superuser")
    assert not is_allowed("order:create", ghost)


def test_authorize_raises_not_authorized():
    with pytest.raises(NotAuthorized):
        authorize("order:list_by_user", caller(UserRole.VENDOR))


def test_every_rule_names_known_roles():
    for rule in POLICY.values():
        assert rule.roles <= frozenset(UserRole)

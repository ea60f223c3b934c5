from unittest.mock import Mock

import pytest

from authentication.permissions import AdminRequired, VendorRequired, build_role_set, user_has_role
from marketplace.tests.factories import AdminFactory, UserFactory, VendorUserFactory
from utils.logging_utils import mask_value
from utils.rbac import is_admin


@pytest.mark.unit
@pytest.mark.django_db
class TestRolePermissions:
    def request_for(self, user):
        return Mock(user=user)

    def test_role_sets(self):
        assert build_role_set(UserFactory()) == {"user"}
        assert build_role_set(VendorUserFactory()) == {"user", "vendor"}
        assert "admin" in build_role_set(AdminFactory())

    def test_role_is_read_from_database(self):
        user = UserFactory()
        user.role = "admin"

        assert user_has_role(user, "admin") is False

    def test_vendor_required(self):
        permission = VendorRequired()

        assert permission.has_permission(self.request_for(VendorUserFactory()), None)
        assert permission.has_permission(self.request_for(AdminFactory()), None)
        assert not permission.has_permission(self.request_for(UserFactory()), None)

    def test_admin_required(self):
        permission = AdminRequired()

        assert permission.has_permission(self.request_for(AdminFactory()), None)
        assert not permission.has_permission(self.request_for(VendorUserFactory()), None)

    def test_anonymous_user(self):
        anonymous = Mock(is_authenticated=False)
        assert not VendorRequired().has_permission(self.request_for(anonymous), None)


@pytest.mark.unit
@pytest.mark.django_db
class TestRbacHelpers:
    def test_is_admin(self):
        assert is_admin(AdminFactory())
        assert not is_admin(VendorUserFactory())
        assert not is_admin(Mock(is_authenticated=False))

    def test_superuser_is_admin(self):
        assert is_admin(UserFactory(is_superuser=True))

    def test_mask_value(self):
        assert mask_value("maker@example.com") == "ma***@example.com"
        assert mask_value("DE89370400440532013000") == "****3000"
        assert mask_value("short") == "***"

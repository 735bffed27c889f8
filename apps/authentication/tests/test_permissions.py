from types import SimpleNamespace

import pytest
from django.contrib.auth.models import AnonymousUser

from apps.authentication.models import User
from apps.authentication.permissions import IsAdmin, IsAdminOrClient


def request_for(user):
    return SimpleNamespace(user=user)


@pytest.mark.parametrize(
    "role, admin, admin_or_client",
    [
        ("super_admin", True, True),
        ("project_manager", True, True),
        ("team_member", False, False),
        ("client", False, True),
    ],
)
def test_role_permissions(role, admin, admin_or_client):
    request = request_for(User(email=f"{role}@studio.test", role=role))

    assert IsAdmin().has_permission(request, None) is admin
    assert IsAdminOrClient().has_permission(request, None) is admin_or_client


def test_anonymous_user_has_no_role_permissions():
    request = request_for(AnonymousUser())

    assert not IsAdmin().has_permission(request, None)
    assert not IsAdminOrClient().has_permission(request, None)


@pytest.mark.django_db
def test_create_superuser_defaults_to_super_admin():
    user = User.objects.create_superuser(email="root@studio.test", password="pass12345", full_name="Root")

    assert user.role == "super_admin"
    assert user.is_portal_admin
    assert user.is_staff and user.is_superuser
    assert user.check_password("pass12345")

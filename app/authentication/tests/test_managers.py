"""
Tests for the email-based UserManager.
"""

import pytest

from authentication.models import User, UserRole


@pytest.mark.django_db
class TestCreateUser:
    def test_defaults_to_client_role(self):
        user = User.objects.create_user(email="Someone@EXAMPLE.com", password="pw-12345")

        assert user.role == UserRole.CLIENT
        assert user.is_client
        assert not user.is_staff
        assert user.check_password("pw-12345")

    def test_normalizes_email_domain(self):
        user = User.objects.create_user(email="Someone@EXAMPLE.com")

        assert user.email == "Someone@example.com"

    def test_user_without_password_is_unusable(self):
        user = User.objects.create_user(email="nopw@example.com")

        assert not user.has_usable_password()

    def test_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email="")

    def test_professional_role(self):
        user = User.objects.create_user(
            email="pro@example.com", role=UserRole.PROFESSIONAL
        )

        assert user.is_professional
        assert not user.is_platform_admin


@pytest.mark.django_db
class TestCreateSuperuser:
    def test_superuser_gets_admin_role(self):
        admin = User.objects.create_superuser(email="root@example.com", password="pw")

        assert admin.role == UserRole.ADMIN
        assert admin.is_staff
        assert admin.is_superuser
        assert admin.is_platform_admin

    def test_rejects_non_staff_superuser(self):
        with pytest.raises(ValueError):
            User.objects.create_superuser(
                email="root@example.com", password="pw", is_staff=False
            )

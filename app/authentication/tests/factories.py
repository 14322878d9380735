"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import (
        ClientUserFactory,
        ProfessionalUserFactory,
    )

    client = ClientUserFactory()
    professional = ProfessionalUserFactory(full_name="Ana Pro")
"""

import factory

from authentication.models import User, UserRole


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Examples:
        user = UserFactory()
        admin = UserFactory(role=UserRole.ADMIN)
        inactive = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Sequence(lambda n: f"User {n}")
    role = UserRole.CLIENT
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class ClientUserFactory(UserFactory):
    email = factory.Sequence(lambda n: f"client{n}@example.com")
    role = UserRole.CLIENT


class ProfessionalUserFactory(UserFactory):
    email = factory.Sequence(lambda n: f"professional{n}@example.com")
    role = UserRole.PROFESSIONAL


class AdminUserFactory(UserFactory):
    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    role = UserRole.ADMIN

"""
Factory Boy factories for authentication models.

Provides realistic test data generation for:
- User: Identity-provider backed users (profile filled via post-generation)

Usage:
    from authentication.tests.factories import UserFactory

    # Create a user with default profile values
    user = UserFactory()

    # Override profile fields
    user = UserFactory(profile__display_name="Ada Lovelace", profile__username="ada")

    # Hide presence from other users
    user = UserFactory(profile__show_online_status=False)
"""

import factory

from authentication.models import User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    The Profile is created by the post_save signal; the ``profile``
    post-generation hook then fills in a display name and handle and
    applies any ``profile__<field>`` overrides.

    Examples:
        user = UserFactory()
        staff = UserFactory(is_staff=True)
        inactive = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    identity_id = factory.Sequence(lambda n: f"idp_{n:05d}")
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", None)
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )

    @factory.post_generation
    def profile(obj, create, extracted, **kwargs):
        if not create:
            return
        fields = {
            "display_name": f"Test User {obj.pk}",
            "username": f"user{obj.pk}",
            **kwargs,
        }
        profile = obj.profile
        for name, value in fields.items():
            setattr(profile, name, value)
        profile.save()

import django_filters

from modules.accounts.constants import UserRole
from modules.accounts.models import User


class UserFilter(django_filters.FilterSet):
    role = django_filters.ChoiceFilter(choices=UserRole.choices)
    approved = django_filters.BooleanFilter()
    is_active = django_filters.BooleanFilter()
    colony = django_filters.UUIDFilter(field_name="store_profile__colony_id")

    class Meta:
        model = User
        fields = ["role", "approved", "is_active", "colony"]

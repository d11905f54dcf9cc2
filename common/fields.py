"""
Serializer fields shared by the apps.
"""
from rest_framework import serializers


class OwnedPrimaryKeyField(serializers.PrimaryKeyRelatedField):
    """Only accepts rows belonging to the requesting account.

    Viewsets using `OwnedQuerysetMixin` put the account in the serializer
    context as `owner`.
    """

    owner_field = "user"

    def get_queryset(self):
        owner = self.context.get("owner")
        qs = super().get_queryset()
        if owner is None:
            return qs.none()
        return qs.filter(**{self.owner_field: owner})

"""
Tenant scoping for viewsets.

Every owned row carries a `user` foreign key; these mixins make sure a
request only ever sees and writes its own rows.
"""


class OwnedQuerysetMixin:
    """Filter `queryset` by `request.user` and stamp the owner on create."""

    owner_field = "user"

    def get_queryset(self):
        qs = super().get_queryset()
        return qs.filter(**{self.owner_field: self.request.user})

    def perform_create(self, serializer):
        serializer.save(**{self.owner_field: self.request.user})

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx["owner"] = self.request.user
        return ctx

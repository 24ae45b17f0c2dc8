class FilterableQuerysetMixin:
    """
    Mixin to provide exact-match filtering from query parameters.
    Set filter_fields on the ViewSet to choose the fields.
    """

    def get_queryset(self):
        qs = super().get_queryset()

        for field in getattr(self, 'filter_fields', []):
            value = self.request.query_params.get(field)
            if value:
                qs = qs.filter(**{f"{field}__iexact": value})

        return qs


class OwnedQuerysetMixin:
    """
    Restricts the queryset to records owned by the requesting user.
    Staff get no wider view here; owner-only actions are enforced per object.
    """

    def get_queryset(self):
        qs = super().get_queryset()
        user_field = getattr(self, 'user_field', 'user')
        return qs.filter(**{user_field: self.request.user})


class OrderedQuerysetMixin:
    """
    Mixin to provide default ordering for querysets.
    """

    def get_queryset(self):
        qs = super().get_queryset()
        ordering = getattr(self, 'default_ordering', ['-created_at'])
        return qs.order_by(*ordering)


class UserFilterableQuerysetMixin(OwnedQuerysetMixin, FilterableQuerysetMixin, OrderedQuerysetMixin):
    """
    Combined mixin for user-specific views with filtering and ordering.
    """

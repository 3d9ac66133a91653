import django_filters

from .models import Shop


class ShopFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    owner_email = django_filters.CharFilter(field_name="owner__email", lookup_expr="iexact")

    class Meta:
        model = Shop
        fields = ["approval_status", "is_banned", "is_active"]

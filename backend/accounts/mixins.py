from accounts.utils import get_tenant_for_request


class TenantQuerySetMixin:
    """
    Mixin pour forcer le filtrage et l'insertion du tenant sur les queryset DRF.
    """

    def get_queryset(self):
        base_qs = super().get_queryset()
        tenant = get_tenant_for_request(self.request)
        return base_qs.filter(tenant=tenant)

    def perform_create(self, serializer):
        tenant = get_tenant_for_request(self.request)
        serializer.save(tenant=tenant)

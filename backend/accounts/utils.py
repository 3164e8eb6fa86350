from rest_framework import exceptions

from accounts.models import Tenant, UserProfile


def get_tenant_for_request(request):
    """
    Le tenant est toujours résolu depuis le profil de l'utilisateur connecté,
    jamais depuis un état global.
    """
    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        raise exceptions.NotAuthenticated()

    profile = getattr(user, "profile", None)
    if profile is None:
        raise exceptions.PermissionDenied("Aucun établissement associé à ce compte.")
    return profile.tenant


def get_user_role(request):
    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        return None
    try:
        profile = user.profile
    except UserProfile.DoesNotExist:
        return None
    return (profile.role or "").strip().lower() or None


def get_or_create_default_tenant():
    tenant = Tenant.objects.order_by("id").first()
    if tenant is None:
        tenant = Tenant.objects.create(name="Default Hotel")
    return tenant

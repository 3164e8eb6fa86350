from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import UserProfile
from .utils import get_or_create_default_tenant


class SimpleTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        profile = getattr(user, "profile", None)
        if profile:
            token["tenant_id"] = profile.tenant_id
            token["role"] = profile.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)

        profile = getattr(self.user, "profile", None)
        if not profile:
            tenant = get_or_create_default_tenant()
            profile = UserProfile.objects.create(user=self.user, tenant=tenant, role="operator")

        data["tenant"] = {"id": profile.tenant_id, "name": profile.tenant.name}
        data["role"] = profile.role
        return data


class MeSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField(allow_blank=True, required=False)
    role = serializers.SerializerMethodField()
    tenant = serializers.SerializerMethodField()

    def get_role(self, obj):
        profile = getattr(obj, "profile", None)
        return profile.role if profile else None

    def get_tenant(self, obj):
        profile = getattr(obj, "profile", None)
        if not profile:
            return None
        return {
            "id": profile.tenant.id,
            "name": profile.tenant.name,
            "currency_code": profile.tenant.currency_code,
        }

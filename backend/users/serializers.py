from rest_framework import serializers

from .models import MarketplaceUser


class UserSerializer(serializers.Serializer):
    id = serializers.CharField()
    email = serializers.EmailField()
    role = serializers.SerializerMethodField()
    name = serializers.CharField()

    def get_role(self, user):
        return user.role.value


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=MarketplaceUser.Roles.choices)
    name = serializers.CharField(max_length=255)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=MarketplaceUser.Roles.choices)

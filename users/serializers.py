"""
Serializers for the users app: registration, email login and the
profile of the authenticated user.
"""
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.validators import UniqueValidator
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from billing.limits import effective_plan
from common.permissions import is_platform_admin
from .models import UserProfile


class UserProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserProfile
        fields = [
            "nome",
            "nome_fantasia",
            "cnpj_cpf",
            "telefone",
            "horas_trabalhadas_mes",
            "plan",
            "plan_expires_at",
            "subscription_status",
            "pdf_exports_count",
        ]
        # Plan changes go through billing or the back-office only
        read_only_fields = ["plan", "plan_expires_at", "subscription_status", "pdf_exports_count"]


class UserSerializer(serializers.ModelSerializer):
    profile = UserProfileSerializer(required=False)
    effective_plan = serializers.SerializerMethodField()
    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "username", "email", "profile", "effective_plan", "is_admin"]
        read_only_fields = ["id", "username", "email"]

    def get_effective_plan(self, obj):
        return effective_plan(obj.profile)

    def get_is_admin(self, obj):
        return is_platform_admin(obj)

    def update(self, instance, validated_data):
        profile_data = validated_data.pop("profile", None)
        instance = super().update(instance, validated_data)
        if profile_data:
            profile = instance.profile
            for key, value in profile_data.items():
                setattr(profile, key, value)
            profile.save()
        return instance


class RegisterSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(
        label="Email",
        validators=[UniqueValidator(queryset=User.objects.all(), lookup="iexact")],
    )
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    password2 = serializers.CharField(write_only=True, style={"input_type": "password"})
    nome = serializers.CharField(required=False, allow_blank=True, max_length=255)

    class Meta:
        model = User
        fields = ["id", "email", "password", "password2", "nome"]
        read_only_fields = ["id"]

    def validate(self, attrs):
        if attrs["password"] != attrs["password2"]:
            raise serializers.ValidationError({"password2": "As senhas não conferem."})
        validate_password(attrs["password"], user=User(email=attrs["email"]))
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        nome = validated_data.pop("nome", "")
        validated_data.pop("password2")
        email = validated_data["email"].lower()
        user = User.objects.create_user(
            username=email,
            email=email,
            password=validated_data["password"],
        )
        if nome:
            UserProfile.objects.filter(user=user).update(nome=nome)
        return user

    def to_representation(self, instance):
        return UserSerializer(instance, context=self.context).data


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Login using email + password and return SimpleJWT refresh/access tokens.
    POST body: {"email": "...", "password": "..."}
    """
    email = serializers.EmailField(write_only=True)
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop(self.username_field, None)

    def validate(self, attrs):
        email = attrs.get("email")
        password = attrs.get("password")

        user = User.objects.filter(email__iexact=email).first()
        if user is None or not user.check_password(password):
            raise AuthenticationFailed("No active account found with the given credentials")
        if not user.is_active:
            raise AuthenticationFailed("User account is disabled")

        refresh = self.get_token(user)
        return {"refresh": str(refresh), "access": str(refresh.access_token)}

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers

from ledger.models import Product, UserProduct


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField(max_length=150)
    password = serializers.CharField(min_length=6, max_length=128, write_only=True)

    def validate_email(self, value):
        value = value.lower()
        if get_user_model().objects.filter(username=value).exists():
            raise serializers.ValidationError("The email has already been taken.")
        return value


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)

    def validate_email(self, value):
        return value.lower()


class DurationSerializer(serializers.Serializer):
    """
    Only checks that a whole number of hours was sent.

    Membership in the allowed set is decided by the rental policy so that
    the API and direct callers reject the same values with the same error.
    """

    duration = serializers.IntegerField(
        error_messages={
            "required": "Rental duration is required.",
            "invalid": "Rental duration must be an integer.",
        }
    )


class OwnershipInfoSerializer(serializers.ModelSerializer):
    rental_active = serializers.SerializerMethodField()

    class Meta:
        model = UserProduct
        fields = [
            "ownership_type",
            "unique_code",
            "rent_started_at",
            "rent_expires_at",
            "rental_active",
        ]

    def get_rental_active(self, obj):
        return obj.is_rental_active(timezone.now())


class ProductSerializer(serializers.ModelSerializer):
    """Catalog entry plus the requesting user's own entitlement, if any."""

    ownership_info = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "price",
            "category",
            "company",
            "rental_price",
            "created_at",
            "updated_at",
            "ownership_info",
        ]

    def get_ownership_info(self, obj):
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return None

        record = (
            UserProduct.objects
            .filter(user_id=user.id, product_id=obj.id)
            .order_by("-created_at", "-id")
            .first()
        )
        if record is None:
            return None

        return OwnershipInfoSerializer(record).data


class UserProductSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = UserProduct
        fields = [
            "id",
            "product_id",
            "product_name",
            "ownership_type",
            "unique_code",
            "rent_expires_at",
            "created_at",
            "updated_at",
        ]

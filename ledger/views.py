"""
API Layer: Tool Rental Endpoints (Django REST Framework)

The views are thin controllers. Their responsibilities are limited to:

- Input validation through serializers
- Resolving the product or entitlement record named in the URL
- Delegation to the application use cases
- Translation of ledger exceptions into HTTP responses

No business rules are implemented here. Successful calls answer with
{"success": true, "message": ..., "data": ...}; ledger failures answer with
{"error": message} and never carry partial data.
"""

from django.contrib.auth import authenticate
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.application import use_cases
from ledger.authentication import token_expires_at
from ledger.domain.exceptions import (
    ActiveRentalExists,
    AlreadyOwned,
    DurationCapExceeded,
    InsufficientFunds,
    InvalidDuration,
    LedgerError,
    NotRentable,
    OperationFailed,
)
from ledger.models import Product, UserProduct
from ledger.permissions import CanRenewRecord, IsRecordOwner
from ledger.serializers import (
    DurationSerializer,
    LoginSerializer,
    ProductSerializer,
    RegisterSerializer,
    UserProductSerializer,
)

ERROR_STATUS = {
    InvalidDuration: status.HTTP_400_BAD_REQUEST,
    AlreadyOwned: status.HTTP_400_BAD_REQUEST,
    ActiveRentalExists: status.HTTP_400_BAD_REQUEST,
    DurationCapExceeded: status.HTTP_400_BAD_REQUEST,
    InsufficientFunds: status.HTTP_402_PAYMENT_REQUIRED,
    NotRentable: status.HTTP_403_FORBIDDEN,
    OperationFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(exc):
    code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({"error": exc.message}, status=code)


def success_response(data, message, code=status.HTTP_200_OK):
    return Response({"success": True, "message": message, "data": data}, status=code)


def _duration(request):
    serializer = DurationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data["duration"]


class RegisterView(APIView):
    """POST /api/register"""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = use_cases.register_user(**serializer.validated_data)
        token = use_cases.issue_token(user)

        return Response(
            {
                "message": "Registration successful",
                "token": token.key,
                "expires_at": token_expires_at(token),
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """POST /api/login"""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request,
            username=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )
        if user is None:
            return Response({"error": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED)

        token = use_cases.issue_token(user)

        return Response(
            {
                "message": "Login successful",
                "token": token.key,
                "expires_at": token_expires_at(token),
            },
            status=status.HTTP_200_OK,
        )


class LogoutView(APIView):
    """POST /api/logout"""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        use_cases.revoke_tokens(request.user)
        return Response({"message": "Logged out successfully"}, status=status.HTTP_200_OK)


class ProductListView(APIView):
    """GET /api/products"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        products = Product.objects.all()
        serializer = ProductSerializer(products, many=True, context={"request": request})
        return Response({"success": True, "data": serializer.data}, status=status.HTTP_200_OK)


class ProductDetailView(APIView):
    """GET /api/products/<product_id>"""

    permission_classes = [IsAuthenticated]

    def get(self, request, product_id):
        product = get_object_or_404(Product, pk=product_id)
        serializer = ProductSerializer(product, context={"request": request})
        return Response({"success": True, "data": serializer.data}, status=status.HTTP_200_OK)


class PurchaseView(APIView):
    """POST /api/products/<product_id>/purchase"""

    permission_classes = [IsAuthenticated]

    def post(self, request, product_id):
        product = get_object_or_404(Product, pk=product_id)

        try:
            result = use_cases.purchase_product(request.user, product)
        except LedgerError as exc:
            return error_response(exc)

        return success_response(result, "Product purchased successfully", status.HTTP_201_CREATED)


class RentView(APIView):
    """POST /api/products/<product_id>/rent"""

    permission_classes = [IsAuthenticated]

    def post(self, request, product_id):
        product = get_object_or_404(Product, pk=product_id)
        duration = _duration(request)

        try:
            result = use_cases.rent_product(request.user, product, duration)
        except LedgerError as exc:
            return error_response(exc)

        return success_response(result, "Product rented successfully", status.HTTP_201_CREATED)


class UserProductRenewView(APIView):
    """POST /api/user-products/<record_id>/renew"""

    permission_classes = [IsAuthenticated, CanRenewRecord]

    def post(self, request, record_id):
        record = get_object_or_404(UserProduct.objects.select_related("product"), pk=record_id)
        self.check_object_permissions(request, record)
        duration = _duration(request)

        try:
            result = use_cases.renew_rental(record, duration, request.user)
        except LedgerError as exc:
            return error_response(exc)

        return success_response(result, "Rental renewed successfully")


class ProductRenewView(APIView):
    """
    POST /api/products/<product_id>/renew

    Same as UserProductRenewView, with the rental re-derived from the
    authenticated user and the product.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, product_id):
        product = get_object_or_404(Product, pk=product_id)
        duration = _duration(request)

        record = use_cases.find_active_rental(request.user, product)
        if record is None:
            return Response(
                {"success": False, "message": "No active rental found for this product."},
                status=status.HTTP_404_NOT_FOUND,
            )

        try:
            result = use_cases.renew_rental(record, duration, request.user)
        except LedgerError as exc:
            return error_response(exc)

        return success_response(result, "Rental renewed successfully")


class UserProductStatusView(APIView):
    """GET /api/user-products/<record_id>/status"""

    permission_classes = [IsAuthenticated, IsRecordOwner]

    def get(self, request, record_id):
        record = get_object_or_404(UserProduct, pk=record_id)
        self.check_object_permissions(request, record)

        data = use_cases.check_status(record)
        return Response({"success": True, "data": data}, status=status.HTTP_200_OK)


class PurchaseHistoryView(APIView):
    """GET /api/user/purchase-history"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        records = use_cases.purchase_history(request.user)
        serializer = UserProductSerializer(records, many=True)
        return Response({"success": True, "data": serializer.data}, status=status.HTTP_200_OK)

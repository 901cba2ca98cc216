from django.urls import path

from .views import (
    LoginView,
    LogoutView,
    ProductDetailView,
    ProductListView,
    ProductRenewView,
    PurchaseHistoryView,
    PurchaseView,
    RegisterView,
    RentView,
    UserProductRenewView,
    UserProductStatusView,
)

urlpatterns = [
    path("register", RegisterView.as_view(), name="register"),
    path("login", LoginView.as_view(), name="login"),
    path("logout", LogoutView.as_view(), name="logout"),
    path("products", ProductListView.as_view(), name="products-index"),
    path("products/<int:product_id>", ProductDetailView.as_view(), name="products-show"),
    path("products/<int:product_id>/purchase", PurchaseView.as_view(), name="products-purchase"),
    path("products/<int:product_id>/rent", RentView.as_view(), name="products-rent"),
    path("products/<int:product_id>/renew", ProductRenewView.as_view(), name="products-renew"),
    path("user-products/<int:record_id>/renew", UserProductRenewView.as_view(), name="user-products-renew"),
    path("user-products/<int:record_id>/status", UserProductStatusView.as_view(), name="user-products-status"),
    path("user/purchase-history", PurchaseHistoryView.as_view(), name="user-purchase-history"),
]

from django.contrib import admin

from .models import Account, Product, UserProduct


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "balance")
    search_fields = ("user__email",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "category", "company", "price", "rental_price")
    list_filter = ("category", "company")
    search_fields = ("name",)


@admin.register(UserProduct)
class UserProductAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "product", "ownership_type", "unique_code", "rent_started_at", "rent_expires_at")
    list_filter = ("ownership_type",)
    readonly_fields = ("unique_code", "created_at", "updated_at")

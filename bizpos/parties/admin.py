from django.contrib import admin
from .models import SavedCustomerSettlement


@admin.register(SavedCustomerSettlement)
class SavedCustomerSettlementAdmin(admin.ModelAdmin):
    list_display = ['reference_number', 'customer_name', 'settlement_amount', 'payment_method', 'status', 'user', 'date']
    list_filter = ['status', 'payment_method', 'date']
    search_fields = ['reference_number', 'customer_name', 'customer_phone', 'customer_email']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']

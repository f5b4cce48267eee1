from django.contrib import admin
from .models import SavedGRN


@admin.register(SavedGRN)
class SavedGRNAdmin(admin.ModelAdmin):
    list_display = ['grn_number', 'supplier_name', 'po_number', 'status', 'get_total', 'user', 'created_at']
    list_filter = ['status', 'is_vatable', 'created_at']
    search_fields = ['grn_number', 'supplier_name', 'po_number', 'delivery_note_number']
    ordering = ['-created_at']
    readonly_fields = ['id', 'created_at', 'updated_at']

    def get_total(self, obj):
        return f"{obj.total_amount:.2f}"
    get_total.short_description = 'Total'

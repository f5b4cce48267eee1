import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_grn_id():
    return str(uuid.uuid4())


class SavedGRN(models.Model):
    """Hosted copy of a Goods Received Note; shares its id with the local record"""
    STATUS_CHOICES = [
        ('completed', 'Completed'),
        ('pending', 'Pending'),
        ('cancelled', 'Cancelled'),
    ]

    id = models.CharField(max_length=64, primary_key=True, default=generate_grn_id, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='saved_grns')
    name = models.CharField(max_length=255, blank=True, default='')
    grn_number = models.CharField(max_length=100)

    # Supplier
    supplier_name = models.CharField(max_length=255, blank=True, default='')
    supplier_id = models.CharField(max_length=100, blank=True, default='')
    supplier_phone = models.CharField(max_length=50, blank=True, default='')
    supplier_email = models.CharField(max_length=255, blank=True, default='')
    supplier_address = models.TextField(blank=True, default='')
    supplier_tin_number = models.CharField(max_length=100, blank=True, default='')

    # Receiving business
    business_name = models.CharField(max_length=255, blank=True, default='')
    business_address = models.TextField(blank=True, default='')
    business_phone = models.CharField(max_length=50, blank=True, default='')
    business_email = models.CharField(max_length=255, blank=True, default='')
    business_stock_type = models.CharField(max_length=100, blank=True, null=True)
    is_vatable = models.BooleanField(default=False)

    # Delivery
    po_number = models.CharField(max_length=100, blank=True, default='')
    delivery_note_number = models.CharField(max_length=100, blank=True, default='')
    vehicle_number = models.CharField(max_length=100, blank=True, default='')
    driver_name = models.CharField(max_length=255, blank=True, default='')
    received_by = models.CharField(max_length=255, blank=True, default='')
    received_location = models.CharField(max_length=255, blank=True, default='')

    items = models.JSONField(default=list, blank=True)
    receiving_costs = models.JSONField(default=list, blank=True)

    quality_check_notes = models.TextField(blank=True, default='')
    discrepancies = models.TextField(blank=True, default='')

    # Sign-off
    prepared_by = models.CharField(max_length=255, blank=True, default='')
    prepared_date = models.DateField(null=True, blank=True)
    checked_by = models.CharField(max_length=255, blank=True, default='')
    checked_date = models.DateField(null=True, blank=True)
    approved_by = models.CharField(max_length=255, blank=True, default='')
    approved_date = models.DateField(null=True, blank=True)
    received_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='completed')
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return self.grn_number or f"GRN-{self.id}"

    class Meta:
        db_table = 'saved_grns'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='idx_grn_user_created'),
            models.Index(fields=['grn_number'], name='idx_grn_number'),
        ]

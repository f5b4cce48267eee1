from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class SavedCustomerSettlement(models.Model):
    """Hosted copy of a customer settlement; rows without a user belong to anonymous tills"""
    STATUS_CHOICES = [
        ('completed', 'Completed'),
        ('pending', 'Pending'),
        ('cancelled', 'Cancelled'),
    ]

    id = models.CharField(max_length=64, primary_key=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='customer_settlements')
    customer_name = models.CharField(max_length=255)
    customer_id = models.CharField(max_length=100, blank=True, default='')
    customer_phone = models.CharField(max_length=50, blank=True, default='')
    customer_email = models.CharField(max_length=255, blank=True, default='')
    reference_number = models.CharField(max_length=100, db_index=True)
    settlement_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_method = models.CharField(max_length=50, default='Cash')
    cashier_name = models.CharField(max_length=255, default='System')
    previous_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    new_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True, default='')
    date = models.DateField(default=timezone.localdate)
    time = models.CharField(max_length=20, blank=True, default='')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='completed')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.reference_number} - {self.customer_name}"

    class Meta:
        db_table = 'saved_customer_settlements'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='idx_settlement_user_created'),
        ]

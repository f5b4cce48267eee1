from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with a business role"""
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('user', 'User'),
    ]

    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='user')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_business_admin(self):
        """Admins see and manage records created by every user"""
        return self.role == 'admin' or self.is_superuser

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('grn_create', 'GRN Created'),
        ('grn_update', 'GRN Updated'),
        ('grn_delete', 'GRN Deleted'),
        ('stock_consume', 'Stock Consumed'),
        ('invoice_create', 'Invoice Created'),
        ('delivery_create', 'Delivery Created'),
        ('settlement_create', 'Settlement Created'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., GRN number, invoice number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., PO number, reference number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_7f3a1c_idx'),
            models.Index(fields=['action'], name='audit_logs_action_2b9e4d_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_5c8f21_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__9d4e7a_idx'),
        ]

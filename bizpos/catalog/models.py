from django.db import models
from django.db.models import F
from decimal import Decimal


class Category(models.Model):
    """Product categories"""
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'product_categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class ProductQuerySet(models.QuerySet):
    def low_stock(self):
        return self.filter(stock_quantity__lte=F('min_stock_level'))

    def out_of_stock(self):
        return self.filter(stock_quantity__lte=0)


class Product(models.Model):
    """Product master"""
    UNIT_OF_MEASURE_CHOICES = [
        ('piece', 'Piece'),
        ('kg', 'Kilogram'),
        ('g', 'Gram'),
        ('lb', 'Pound'),
        ('oz', 'Ounce'),
        ('l', 'Liter'),
        ('ml', 'Milliliter'),
        ('gal', 'Gallon'),
        ('box', 'Box'),
        ('pack', 'Pack'),
        ('dozen', 'Dozen'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    description = models.TextField(blank=True)
    barcode = models.CharField(max_length=100, blank=True, db_index=True)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True, db_index=True)
    unit_of_measure = models.CharField(max_length=20, choices=UNIT_OF_MEASURE_CHOICES, default='piece')
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    wholesale_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    stock_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    min_stock_level = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))
    max_stock_level = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('100.000'))
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    def __str__(self):
        return f"{self.name} ({self.sku or 'NO-SKU'})"

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.min_stock_level

    def get_stock_value(self):
        """Stock valued at cost price"""
        return self.stock_quantity * self.cost_price

    class Meta:
        db_table = 'products'
        ordering = ['name']

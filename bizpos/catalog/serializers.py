from rest_framework import serializers
from decimal import Decimal
from .models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'is_active', 'product_count', 'created_at', 'updated_at']

    def get_product_count(self, obj):
        return obj.products.count()


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)
    stock_value = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'category', 'category_name', 'description', 'barcode', 'sku',
            'unit_of_measure', 'selling_price', 'cost_price', 'wholesale_price',
            'stock_quantity', 'min_stock_level', 'max_stock_level', 'is_active',
            'is_low_stock', 'stock_value', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_stock_value(self, obj):
        return float(obj.get_stock_value())

    def validate_name(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("Product name is required")
        return value.strip()

    def validate_sku(self, value):
        # Blank SKUs are stored as NULL so the unique constraint ignores them
        return value or None

    def validate(self, attrs):
        for field in ('selling_price', 'cost_price', 'wholesale_price', 'stock_quantity'):
            value = attrs.get(field)
            if value is not None and value < Decimal('0'):
                raise serializers.ValidationError({field: "Must not be negative"})

        instance = self.instance
        min_level = attrs.get('min_stock_level', instance.min_stock_level if instance else Decimal('0'))
        max_level = attrs.get('max_stock_level', instance.max_stock_level if instance else Decimal('100'))
        if min_level is not None and max_level is not None and min_level > max_level:
            raise serializers.ValidationError({'min_stock_level': "Minimum stock level cannot exceed maximum stock level"})
        return attrs

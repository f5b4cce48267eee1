from rest_framework import serializers


class SaleLineSerializer(serializers.Serializer):
    """One sold line on an invoice or delivery note"""
    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    description = serializers.CharField(max_length=255)
    quantity = serializers.FloatField(min_value=0)
    unit = serializers.CharField(max_length=50, required=False, allow_blank=True)
    unit_price = serializers.FloatField(min_value=0, required=False)
    total = serializers.FloatField(required=False)


class SaleDocumentSerializer(serializers.Serializer):
    """Fields shared by invoices and delivery notes"""
    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    customer = serializers.CharField(max_length=255)
    items = serializers.IntegerField(min_value=0, required=False)
    total = serializers.FloatField(min_value=0)
    payment_method = serializers.CharField(max_length=50, default='Cash')
    items_list = SaleLineSerializer(many=True, required=False)
    subtotal = serializers.FloatField(required=False)
    tax = serializers.FloatField(min_value=0, required=False)
    discount = serializers.FloatField(min_value=0, required=False)
    amount_received = serializers.FloatField(min_value=0, required=False)
    change = serializers.FloatField(required=False)


class InvoiceSerializer(SaleDocumentSerializer):
    STATUS_CHOICES = ['completed', 'pending', 'cancelled', 'refunded']

    invoice_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=STATUS_CHOICES, default='completed')


class DeliverySerializer(SaleDocumentSerializer):
    STATUS_CHOICES = ['completed', 'in-transit', 'pending', 'delivered', 'cancelled']

    delivery_note_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=STATUS_CHOICES, default='pending')
    vehicle = serializers.CharField(max_length=100, required=False, allow_blank=True)
    driver = serializers.CharField(max_length=255, required=False, allow_blank=True)
    delivery_notes = serializers.CharField(required=False, allow_blank=True)


class SalesOrderCustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)


class SalesOrderItemSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255)
    quantity = serializers.FloatField(min_value=0)
    unit_price = serializers.FloatField(min_value=0)
    total_price = serializers.FloatField(required=False)

    def validate(self, attrs):
        if attrs.get('total_price') is None:
            attrs['total_price'] = round(attrs['quantity'] * attrs['unit_price'], 2)
        return attrs


class SalesOrderSerializer(serializers.Serializer):
    STATUS_CHOICES = ['pending', 'completed', 'refunded', 'cancelled']

    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    order_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    customer = SalesOrderCustomerSerializer()
    items = SalesOrderItemSerializer(many=True)
    subtotal = serializers.FloatField(min_value=0, required=False)
    discount = serializers.FloatField(min_value=0, required=False)
    tax = serializers.FloatField(min_value=0, required=False)
    total = serializers.FloatField(min_value=0, required=False)
    payment_method = serializers.CharField(max_length=50, default='Cash')
    status = serializers.ChoiceField(choices=STATUS_CHOICES, default='pending')
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        items = attrs.get('items')
        if items is not None:
            if attrs.get('subtotal') is None:
                attrs['subtotal'] = round(sum(item['total_price'] for item in items), 2)
            if attrs.get('total') is None:
                attrs['total'] = round(
                    attrs['subtotal'] - (attrs.get('discount') or 0) + (attrs.get('tax') or 0), 2
                )
        return attrs

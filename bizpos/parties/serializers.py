from rest_framework import serializers
from .models import SavedCustomerSettlement


class SettlementAmountsMixin(serializers.Serializer):
    settlement_amount = serializers.FloatField(min_value=0)
    previous_balance = serializers.FloatField(required=False)
    amount_paid = serializers.FloatField(min_value=0, required=False)
    new_balance = serializers.FloatField(required=False)

    def validate(self, attrs):
        # new balance follows from the previous balance and the payment when not given
        if attrs.get('amount_paid') is None:
            attrs['amount_paid'] = attrs['settlement_amount']
        if attrs.get('previous_balance') is not None and attrs.get('new_balance') is None:
            attrs['new_balance'] = round(attrs['previous_balance'] - attrs['amount_paid'], 2)
        return attrs


class CustomerSettlementSerializer(SettlementAmountsMixin):
    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    customer_name = serializers.CharField(max_length=255)
    customer_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    customer_email = serializers.CharField(max_length=255, required=False, allow_blank=True)
    reference_number = serializers.CharField(max_length=100)
    payment_method = serializers.CharField(max_length=50, default='Cash')
    cashier_name = serializers.CharField(max_length=255, default='System')
    notes = serializers.CharField(required=False, allow_blank=True)
    date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    time = serializers.CharField(max_length=20, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=SavedCustomerSettlement.STATUS_CHOICES, default='completed')


class SupplierSettlementSerializer(SettlementAmountsMixin):
    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    supplier_name = serializers.CharField(max_length=255)
    supplier_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    supplier_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    supplier_email = serializers.CharField(max_length=255, required=False, allow_blank=True)
    reference_number = serializers.CharField(max_length=100)
    payment_method = serializers.CharField(max_length=50, default='Cash')
    processed_by = serializers.CharField(max_length=255, default='System')
    po_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    time = serializers.CharField(max_length=20, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['completed', 'pending', 'cancelled'], default='completed')

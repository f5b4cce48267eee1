import uuid

from rest_framework import serializers

from .calculations import calculate_available, calculate_line_total
from .models import SavedGRN

QUANTITY_FIELDS = ('quantity', 'delivered', 'soldout', 'rejected_out', 'rejection_in', 'damaged', 'complimentary')


class GRNItemSerializer(serializers.Serializer):
    """A single received line on a GRN"""
    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    description = serializers.CharField(max_length=255)
    quantity = serializers.FloatField(min_value=0, required=False)
    delivered = serializers.FloatField(min_value=0, required=False)
    soldout = serializers.FloatField(min_value=0, required=False)
    rejected_out = serializers.FloatField(min_value=0, required=False)
    rejection_in = serializers.FloatField(min_value=0, required=False)
    damaged = serializers.FloatField(min_value=0, required=False)
    complimentary = serializers.FloatField(min_value=0, required=False)
    available = serializers.FloatField(required=False)
    unit = serializers.CharField(max_length=50, required=False, allow_blank=True)
    original_unit_cost = serializers.FloatField(min_value=0, required=False, allow_null=True)
    unit_cost = serializers.FloatField(min_value=0, required=False)
    total = serializers.FloatField(required=False)
    batch_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    expiry_date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    remarks = serializers.CharField(required=False, allow_blank=True)
    receiving_cost_per_unit = serializers.FloatField(required=False)
    total_with_receiving_cost = serializers.FloatField(required=False)
    rate = serializers.FloatField(required=False, allow_null=True)

    def validate_description(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Item description is required")
        return value


class ReceivingCostSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    amount = serializers.FloatField(min_value=0)


class GRNDataSerializer(serializers.Serializer):
    """Header, line items and sign-off of a GRN"""
    grn_number = serializers.CharField(max_length=100)
    date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    time = serializers.CharField(max_length=30, required=False, allow_blank=True)
    supplier_name = serializers.CharField(max_length=255)
    supplier_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    supplier_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    supplier_email = serializers.CharField(max_length=255, required=False, allow_blank=True)
    supplier_address = serializers.CharField(required=False, allow_blank=True)
    business_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    business_address = serializers.CharField(required=False, allow_blank=True)
    business_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    business_email = serializers.CharField(max_length=255, required=False, allow_blank=True)
    business_stock_type = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    is_vatable = serializers.BooleanField(required=False)
    supplier_tin_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    po_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_note_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    vehicle_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    driver_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    received_by = serializers.CharField(max_length=255, required=False, allow_blank=True)
    received_location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    items = GRNItemSerializer(many=True)
    quality_check_notes = serializers.CharField(required=False, allow_blank=True)
    discrepancies = serializers.CharField(required=False, allow_blank=True)
    prepared_by = serializers.CharField(max_length=255, required=False, allow_blank=True)
    prepared_date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    checked_by = serializers.CharField(max_length=255, required=False, allow_blank=True)
    checked_date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    approved_by = serializers.CharField(max_length=255, required=False, allow_blank=True)
    approved_date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    received_date = serializers.CharField(max_length=30, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=SavedGRN.STATUS_CHOICES, required=False)
    receiving_costs = ReceivingCostSerializer(many=True, required=False)

    def validate_grn_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("GRN number is required")
        return value

    def validate_items(self, value):
        if not any((item.get('description') or '').strip() for item in value):
            raise serializers.ValidationError("Please add at least one item")
        if not all((item.get('description') or '').strip() for item in value):
            raise serializers.ValidationError("Item description is required")
        return value


class SavedGRNRecordSerializer(serializers.Serializer):
    """Incoming GRN record: optional id and name around the GRN data"""
    id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    data = GRNDataSerializer()


class GRNItemQuantitySerializer(serializers.Serializer):
    """Manual adjustment of the movement quantities on one GRN item"""
    soldout = serializers.FloatField(min_value=0, required=False)
    rejected_out = serializers.FloatField(min_value=0, required=False)
    rejection_in = serializers.FloatField(min_value=0, required=False)
    damaged = serializers.FloatField(min_value=0, required=False)
    complimentary = serializers.FloatField(min_value=0, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide at least one quantity to update")
        return attrs


class ReceivingCostDistributionSerializer(serializers.Serializer):
    items = GRNItemSerializer(many=True)
    receiving_costs = ReceivingCostSerializer(many=True, required=False)


class ApplyReceivingCostsSerializer(serializers.Serializer):
    """Rate edits and optional replacement receiving costs for a stored GRN"""
    rates = serializers.DictField(child=serializers.FloatField(min_value=0), required=False)
    receiving_costs = ReceivingCostSerializer(many=True, required=False)


def prepare_grn_items(items):
    """Fill ids and zero quantities, derive ``available`` and default ``total``"""
    prepared = []
    for item in items or []:
        item = dict(item)
        if not item.get('id'):
            item['id'] = str(uuid.uuid4())
        for field in QUANTITY_FIELDS:
            item[field] = item.get(field) or 0
        item['unit_cost'] = item.get('unit_cost') or 0
        item['available'] = max(0.0, calculate_available(item))
        if item.get('total') is None:
            item['total'] = calculate_line_total(item)
        prepared.append(item)
    return prepared


def prepare_grn_data(data):
    data = dict(data)
    data['items'] = prepare_grn_items(data.get('items'))
    data['receiving_costs'] = [dict(cost) for cost in data.get('receiving_costs') or []]
    data.setdefault('status', 'completed')
    return data

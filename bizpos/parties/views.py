from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from bizpos.core.exceptions import DuplicateRecordError, RecordStoreError
from bizpos.core.utils import create_audit_log
from .customer_settlements import (
    delete_customer_settlement, get_customer_settlement_by_id, get_saved_customer_settlement_by_id,
    get_saved_settlements, save_customer_settlement, update_customer_settlement,
)
from .supplier_settlements import (
    delete_supplier_settlement, get_saved_supplier_settlements, get_supplier_settlement_by_id,
    save_supplier_settlement, update_supplier_settlement,
)
from .serializers import CustomerSettlementSerializer, SupplierSettlementSerializer


def _storage_error(error):
    if isinstance(error, DuplicateRecordError):
        return Response({'error': str(error)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(error)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _search(records, request, *fields):
    search = request.query_params.get('search', '').strip().lower()
    if not search:
        return records
    return [r for r in records if any(search in str(r.get(field) or '').lower() for field in fields)]


def _validated_edit(request, record, serializer_class):
    payload = {**record, **request.data} if request.method == 'PATCH' else dict(request.data)
    serializer = serializer_class(data=payload)
    if not serializer.is_valid():
        return None, serializer.errors
    return {**serializer.validated_data, 'id': record['id']}, None


# Customer settlements
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_settlement_list_create(request):
    """List customer settlements (local and hosted, merged) or record a new one"""
    if request.method == 'GET':
        settlements = get_saved_settlements(request.user)
        return Response(_search(settlements, request, 'customer_name', 'reference_number'))
    else:
        serializer = CustomerSettlementSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            settlement = save_customer_settlement(serializer.validated_data, request.user)
        except RecordStoreError as e:
            return _storage_error(e)
        create_audit_log(
            request=request,
            action='settlement_create',
            model_name='CustomerSettlement',
            object_id=settlement['id'],
            object_name=settlement['customer_name'],
            object_reference=settlement['reference_number'],
            changes={'settlement_amount': str(settlement['settlement_amount']), 'payment_method': settlement['payment_method']}
        )
        return Response(settlement, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_settlement_detail(request, pk):
    """Retrieve, update or delete a customer settlement"""
    settlement = get_customer_settlement_by_id(pk, request.user)
    if settlement is None:
        return Response({'error': 'Customer settlement not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(settlement)
    try:
        if request.method in ('PUT', 'PATCH'):
            updated, errors = _validated_edit(request, settlement, CustomerSettlementSerializer)
            if errors:
                return Response(errors, status=status.HTTP_400_BAD_REQUEST)
            update_customer_settlement(updated, request.user)
            return Response(updated)
        else:  # DELETE
            delete_customer_settlement(pk, request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except RecordStoreError as e:
        return _storage_error(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_settlement_saved_detail(request, pk):
    """Read a customer settlement straight from the database"""
    settlement = get_saved_customer_settlement_by_id(pk, request.user)
    if settlement is None:
        return Response({'error': 'Customer settlement not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(settlement)


# Supplier settlements
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_settlement_list_create(request):
    """List supplier settlements or record a new one"""
    if request.method == 'GET':
        settlements = get_saved_supplier_settlements(request.user)
        return Response(_search(settlements, request, 'supplier_name', 'reference_number', 'po_number'))
    else:
        serializer = SupplierSettlementSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            settlement = save_supplier_settlement(serializer.validated_data, request.user)
        except RecordStoreError as e:
            return _storage_error(e)
        create_audit_log(
            request=request,
            action='settlement_create',
            model_name='SupplierSettlement',
            object_id=settlement['id'],
            object_name=settlement['supplier_name'],
            object_reference=settlement['reference_number'],
            changes={'settlement_amount': str(settlement['settlement_amount']), 'payment_method': settlement['payment_method']}
        )
        return Response(settlement, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_settlement_detail(request, pk):
    """Retrieve, update or delete a supplier settlement"""
    settlement = get_supplier_settlement_by_id(pk, request.user)
    if settlement is None:
        return Response({'error': 'Supplier settlement not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(settlement)
    try:
        if request.method in ('PUT', 'PATCH'):
            updated, errors = _validated_edit(request, settlement, SupplierSettlementSerializer)
            if errors:
                return Response(errors, status=status.HTTP_400_BAD_REQUEST)
            for field in ('date', 'time'):
                updated[field] = updated.get(field) or settlement.get(field)
            update_supplier_settlement(updated, request.user)
            return Response(updated)
        else:  # DELETE
            delete_supplier_settlement(pk, request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except RecordStoreError as e:
        return _storage_error(e)

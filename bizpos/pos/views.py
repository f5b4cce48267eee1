from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from bizpos.core.exceptions import DuplicateRecordError, RecordStoreError
from bizpos.core.local_store import owner_for
from bizpos.core.utils import create_audit_log
from .invoices import delete_invoice, get_invoice_by_id, get_saved_invoices, save_invoice, update_invoice
from .deliveries import delete_delivery, get_delivery_by_id, get_saved_deliveries, save_delivery, update_delivery
from .sales_orders import (
    delete_sales_order, get_sales_order_by_id, get_saved_sales_orders, save_sales_order, update_sales_order,
)
from .numbering import next_delivery_note_number
from .serializers import DeliverySerializer, InvoiceSerializer, SalesOrderSerializer


def _not_found(label):
    return Response({'error': f'{label} not found'}, status=status.HTTP_404_NOT_FOUND)


def _storage_error(error):
    if isinstance(error, DuplicateRecordError):
        return Response({'error': str(error)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(error)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _filter_records(records, request, number_field):
    """Apply the ?status= and ?search= filters shared by the sales document lists"""
    status_filter = request.query_params.get('status', None)
    search = request.query_params.get('search', '').strip().lower()
    if status_filter:
        records = [record for record in records if record.get('status') == status_filter]
    if search:
        records = [
            record for record in records
            if search in str(record.get(number_field) or '').lower()
            or search in str(record.get('customer') or '').lower()
        ]
    return records


def _edit_record(request, record, serializer_class):
    """Validate a PUT body, or a PATCH body merged over ``record``; returns (data, errors)"""
    payload = {**record, **request.data} if request.method == 'PATCH' else dict(request.data)
    serializer = serializer_class(data=payload)
    if not serializer.is_valid():
        return None, serializer.errors
    return {**serializer.validated_data, 'id': record['id']}, None


# Invoices
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_list_create(request):
    """List saved invoices or save a new one (drawing down GRN stock)"""
    if request.method == 'GET':
        invoices = _filter_records(get_saved_invoices(request.user), request, 'invoice_number')
        return Response(invoices)
    else:
        serializer = InvoiceSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            invoice = save_invoice(serializer.validated_data, request.user)
        except RecordStoreError as e:
            return _storage_error(e)
        create_audit_log(
            request=request,
            action='invoice_create',
            model_name='Invoice',
            object_id=invoice['id'],
            object_name=invoice['invoice_number'],
            changes={'customer': invoice['customer'], 'total': str(invoice['total']), 'items': invoice['items']}
        )
        return Response(invoice, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def invoice_detail(request, pk):
    """Retrieve, update or delete a saved invoice"""
    invoice = get_invoice_by_id(pk, request.user)
    if invoice is None:
        return _not_found('Invoice')

    if request.method == 'GET':
        return Response(invoice)
    try:
        if request.method in ('PUT', 'PATCH'):
            updated, errors = _edit_record(request, invoice, InvoiceSerializer)
            if errors:
                return Response(errors, status=status.HTTP_400_BAD_REQUEST)
            if not updated.get('invoice_number'):
                updated['invoice_number'] = invoice.get('invoice_number')
            update_invoice(updated, request.user)
            return Response(updated)
        else:  # DELETE
            delete_invoice(pk, request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except RecordStoreError as e:
        return _storage_error(e)


# Deliveries
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def delivery_list_create(request):
    """List saved delivery notes or save a new one (drawing down GRN stock)"""
    if request.method == 'GET':
        deliveries = _filter_records(get_saved_deliveries(request.user), request, 'delivery_note_number')
        return Response(deliveries)
    else:
        serializer = DeliverySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            delivery = save_delivery(serializer.validated_data, request.user)
        except RecordStoreError as e:
            return _storage_error(e)
        create_audit_log(
            request=request,
            action='delivery_create',
            model_name='Delivery',
            object_id=delivery['id'],
            object_name=delivery['delivery_note_number'],
            changes={'customer': delivery['customer'], 'total': str(delivery['total']), 'items': delivery['items']}
        )
        return Response(delivery, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def delivery_detail(request, pk):
    """Retrieve, update or delete a saved delivery note"""
    delivery = get_delivery_by_id(pk, request.user)
    if delivery is None:
        return _not_found('Delivery')

    if request.method == 'GET':
        return Response(delivery)
    try:
        if request.method in ('PUT', 'PATCH'):
            updated, errors = _edit_record(request, delivery, DeliverySerializer)
            if errors:
                return Response(errors, status=status.HTTP_400_BAD_REQUEST)
            if not updated.get('delivery_note_number'):
                updated['delivery_note_number'] = delivery.get('delivery_note_number')
            update_delivery(updated, request.user)
            return Response(updated)
        else:  # DELETE
            delete_delivery(pk, request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except RecordStoreError as e:
        return _storage_error(e)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def delivery_next_number(request):
    """Issue the next delivery note number for the current user"""
    number = next_delivery_note_number(owner_for(request.user))
    return Response({'delivery_note_number': number})


# Sales orders
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sales_order_list_create(request):
    """List saved sales orders or save a new one"""
    if request.method == 'GET':
        orders = get_saved_sales_orders(request.user)
        status_filter = request.query_params.get('status', None)
        if status_filter:
            orders = [order for order in orders if order.get('status') == status_filter]
        return Response(orders)
    else:
        serializer = SalesOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            order = save_sales_order(serializer.validated_data, request.user)
        except RecordStoreError as e:
            return _storage_error(e)
        return Response(order, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def sales_order_detail(request, pk):
    """Retrieve, update or delete a saved sales order"""
    order = get_sales_order_by_id(pk, request.user)
    if order is None:
        return _not_found('Sales order')

    if request.method == 'GET':
        return Response(order)
    try:
        if request.method in ('PUT', 'PATCH'):
            updated, errors = _edit_record(request, order, SalesOrderSerializer)
            if errors:
                return Response(errors, status=status.HTTP_400_BAD_REQUEST)
            if not updated.get('order_number'):
                updated['order_number'] = order.get('order_number')
            update_sales_order(updated, request.user)
            return Response(updated)
        else:  # DELETE
            delete_sales_order(pk, request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except RecordStoreError as e:
        return _storage_error(e)

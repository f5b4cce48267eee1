from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.paginator import Paginator
from django.utils import timezone
from .calculations import (
    calculate_available, calculate_grn_amount, calculate_grn_total,
    calculate_receiving_costs_total, distribute_receiving_costs,
)
from .exceptions import GRNStorageError
from .grn_store import (
    delete_grn, get_grn_by_id, get_saved_grns, save_grn, update_existing_grn_totals, update_grn,
)
from .serializers import (
    ApplyReceivingCostsSerializer, GRNDataSerializer, GRNItemQuantitySerializer, ReceivingCostDistributionSerializer,
    SavedGRNRecordSerializer, prepare_grn_data, prepare_grn_items,
)
from bizpos.core.exceptions import DuplicateRecordError, RecordStoreError
from bizpos.core.utils import create_audit_log


def _grn_not_found():
    return Response({'error': 'GRN not found'}, status=status.HTTP_404_NOT_FOUND)


def _storage_error(error):
    if isinstance(error, DuplicateRecordError):
        return Response({'error': str(error)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(error)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def grn_list_create(request):
    """List saved GRNs or save a new one"""
    if request.method == 'GET':
        grns = get_saved_grns(request.user)

        # Filters
        status_filter = request.query_params.get('status', None)
        search = request.query_params.get('search', '').strip().lower()
        if status_filter:
            grns = [grn for grn in grns if grn['data'].get('status') == status_filter]
        if search:
            grns = [
                grn for grn in grns
                if any(search in (grn['data'].get(field) or '').lower()
                       for field in ('grn_number', 'supplier_name', 'po_number'))
            ]

        # Pagination
        page = int(request.query_params.get('page', 1))
        limit = max(1, int(request.query_params.get('limit', 15)))
        paginator = Paginator(grns, limit)
        page_obj = paginator.get_page(page)

        return Response({
            'results': list(page_obj),
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page_obj.number,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        })
    else:  # POST
        serializer = SavedGRNRecordSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = prepare_grn_data(serializer.validated_data['data'])
        now = timezone.now().isoformat()
        grn = {
            'id': serializer.validated_data.get('id') or '',
            'name': serializer.validated_data.get('name') or f"GRN-{data['grn_number']}",
            'total': calculate_grn_amount(data['items'], data['receiving_costs']),
            'data': data,
            'created_at': now,
            'updated_at': now,
        }
        try:
            grn = save_grn(grn, request.user)
        except RecordStoreError as e:
            return _storage_error(e)

        create_audit_log(
            request=request,
            action='grn_create',
            model_name='SavedGRN',
            object_id=grn['id'],
            object_name=data['grn_number'],
            object_reference=data.get('po_number') or None,
            changes={'supplier_name': data['supplier_name'], 'items': len(data['items']), 'total': str(grn['total'])}
        )
        return Response(grn, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def grn_detail(request, pk):
    """Retrieve, update or delete a saved GRN"""
    grn = get_grn_by_id(pk, request.user)
    if grn is None:
        return _grn_not_found()

    if request.method == 'GET':
        return Response(grn)
    elif request.method in ('PUT', 'PATCH'):
        partial = request.method == 'PATCH'
        serializer = GRNDataSerializer(data=request.data.get('data', {}), partial=partial)
        if not serializer.is_valid():
            return Response({'data': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        data = {**grn['data'], **serializer.validated_data} if partial else dict(serializer.validated_data)
        data = prepare_grn_data(data)
        updated = {
            **grn,
            'name': request.data.get('name') or grn.get('name'),
            'data': data,
            'updated_at': timezone.now().isoformat(),
        }
        try:
            updated = update_grn(updated, request.user)
        except GRNStorageError as e:
            return _storage_error(e)

        changes = {
            field: {'old': str(grn['data'].get(field)), 'new': str(data.get(field))}
            for field in ('grn_number', 'supplier_name', 'po_number', 'status')
            if grn['data'].get(field) != data.get(field)
        }
        if grn.get('total') != updated['total']:
            changes['total'] = {'old': str(grn.get('total')), 'new': str(updated['total'])}
        create_audit_log(
            request=request,
            action='grn_update',
            model_name='SavedGRN',
            object_id=updated['id'],
            object_name=data.get('grn_number'),
            object_reference=data.get('po_number') or None,
            changes=changes
        )
        return Response(updated)
    else:  # DELETE
        try:
            delete_grn(pk, request.user)
        except GRNStorageError as e:
            return _storage_error(e)

        create_audit_log(
            request=request,
            action='grn_delete',
            model_name='SavedGRN',
            object_id=pk,
            object_name=grn['data'].get('grn_number'),
            object_reference=grn['data'].get('po_number') or None,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def grn_item_quantities(request, pk, item_id):
    """Adjust soldout / rejected / damaged quantities of one GRN item"""
    grn = get_grn_by_id(pk, request.user)
    if grn is None:
        return _grn_not_found()

    serializer = GRNItemQuantitySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    items = grn['data'].get('items') or []
    index = next((i for i, item in enumerate(items) if str(item.get('id')) == str(item_id)), None)
    if index is None:
        return Response({'error': 'GRN item not found'}, status=status.HTTP_404_NOT_FOUND)

    item = {**items[index], **serializer.validated_data}
    item['available'] = max(0.0, calculate_available(item))
    items[index] = item
    grn['data']['items'] = items
    grn['updated_at'] = timezone.now().isoformat()

    try:
        updated = update_grn(grn, request.user)
    except GRNStorageError as e:
        return _storage_error(e)

    create_audit_log(
        request=request,
        action='grn_update',
        model_name='SavedGRN',
        object_id=grn['id'],
        object_name=grn['data'].get('grn_number'),
        changes={field: str(value) for field, value in serializer.validated_data.items()}
    )
    return Response(updated)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def grn_distribute_costs(request):
    """Preview items with receiving costs spread over delivered units"""
    serializer = ReceivingCostDistributionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    receiving_costs = serializer.validated_data.get('receiving_costs') or []
    items = distribute_receiving_costs(prepare_grn_items(serializer.validated_data['items']), receiving_costs)
    return Response({
        'items': items,
        'receiving_costs_total': calculate_receiving_costs_total(receiving_costs),
        'total': calculate_grn_total(items),
        'grn_amount': calculate_grn_amount(items, receiving_costs),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def grn_apply_receiving_costs(request, pk):
    """Apply rate edits and spread receiving costs over the stored GRN items"""
    grn = get_grn_by_id(pk, request.user)
    if grn is None:
        return _grn_not_found()

    serializer = ApplyReceivingCostsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(grn['data'])
    rates = serializer.validated_data.get('rates') or {}
    if 'receiving_costs' in serializer.validated_data:
        data['receiving_costs'] = [dict(cost) for cost in serializer.validated_data['receiving_costs']]

    items = []
    for item in data.get('items') or []:
        item = dict(item)
        if str(item.get('id')) in rates:
            item['rate'] = rates[str(item['id'])]
        items.append(item)
    items = distribute_receiving_costs(items, data.get('receiving_costs'))
    for item in items:
        item['available'] = max(0.0, calculate_available(item))
    data['items'] = items

    try:
        updated = update_grn({**grn, 'data': data, 'updated_at': timezone.now().isoformat()}, request.user)
    except GRNStorageError as e:
        return _storage_error(e)

    create_audit_log(
        request=request,
        action='grn_update',
        model_name='SavedGRN',
        object_id=updated['id'],
        object_name=data.get('grn_number'),
        object_reference=data.get('po_number') or None,
        changes={
            'receiving_costs_total': str(calculate_receiving_costs_total(data.get('receiving_costs'))),
            'rates': {item_id: str(rate) for item_id, rate in rates.items()},
        }
    )
    return Response(updated)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def grn_recompute_totals(request):
    """Repair missing GRN totals for the current user"""
    result = update_existing_grn_totals(request.user)
    return Response(result)

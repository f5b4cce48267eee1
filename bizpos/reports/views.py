from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from bizpos.purchasing.grn_store import get_saved_grns
from .summary import build_dashboard_summary, grn_inventory


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_summary(request):
    """Counts and totals across GRNs, sales documents, settlements and products"""
    return Response(build_dashboard_summary(request.user))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def grn_inventory_report(request):
    """Stock on hand per item, summed over the user's GRNs"""
    lines = grn_inventory(get_saved_grns(request.user))
    if request.query_params.get('in_stock') == 'true':
        lines = [line for line in lines if line['available'] > 0]
    return Response({'results': lines, 'count': len(lines)})

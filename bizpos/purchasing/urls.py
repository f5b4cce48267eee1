from django.urls import path
from .views import (
    grn_list_create, grn_detail, grn_item_quantities,
    grn_distribute_costs, grn_apply_receiving_costs, grn_recompute_totals,
)

urlpatterns = [
    path('grns/', grn_list_create, name='grn-list-create'),
    path('grns/distribute-costs/', grn_distribute_costs, name='grn-distribute-costs'),
    path('grns/recompute-totals/', grn_recompute_totals, name='grn-recompute-totals'),
    path('grns/<str:pk>/', grn_detail, name='grn-detail'),
    path('grns/<str:pk>/items/<str:item_id>/', grn_item_quantities, name='grn-item-quantities'),
    path('grns/<str:pk>/apply-receiving-costs/', grn_apply_receiving_costs, name='grn-apply-receiving-costs'),
]

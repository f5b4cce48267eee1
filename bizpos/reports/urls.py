from django.urls import path
from .views import dashboard_summary, grn_inventory_report

urlpatterns = [
    path('reports/dashboard/', dashboard_summary, name='dashboard-summary'),
    path('reports/grn-inventory/', grn_inventory_report, name='grn-inventory-report'),
]

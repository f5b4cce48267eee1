from django.urls import path
from .views import (
    customer_settlement_list_create, customer_settlement_detail, customer_settlement_saved_detail,
    supplier_settlement_list_create, supplier_settlement_detail,
)

urlpatterns = [
    # Customer settlement endpoints
    path('customer-settlements/', customer_settlement_list_create, name='customer-settlement-list-create'),
    path('customer-settlements/<str:pk>/', customer_settlement_detail, name='customer-settlement-detail'),
    path('customer-settlements/<str:pk>/saved/', customer_settlement_saved_detail, name='customer-settlement-saved-detail'),

    # Supplier settlement endpoints
    path('supplier-settlements/', supplier_settlement_list_create, name='supplier-settlement-list-create'),
    path('supplier-settlements/<str:pk>/', supplier_settlement_detail, name='supplier-settlement-detail'),
]

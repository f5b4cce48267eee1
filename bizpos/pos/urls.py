from django.urls import path
from .views import (
    invoice_list_create, invoice_detail,
    delivery_list_create, delivery_detail, delivery_next_number,
    sales_order_list_create, sales_order_detail,
)

urlpatterns = [
    # Invoice endpoints
    path('invoices/', invoice_list_create, name='invoice-list-create'),
    path('invoices/<str:pk>/', invoice_detail, name='invoice-detail'),

    # Delivery note endpoints
    path('deliveries/', delivery_list_create, name='delivery-list-create'),
    path('deliveries/next-number/', delivery_next_number, name='delivery-next-number'),
    path('deliveries/<str:pk>/', delivery_detail, name='delivery-detail'),

    # Sales order endpoints
    path('sales-orders/', sales_order_list_create, name='sales-order-list-create'),
    path('sales-orders/<str:pk>/', sales_order_detail, name='sales-order-detail'),
]

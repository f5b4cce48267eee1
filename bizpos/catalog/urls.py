from django.urls import path
from .views import (
    category_list_create, category_detail,
    product_list_create, product_detail, low_stock_products,
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/low-stock/', low_stock_products, name='product-low-stock'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
]

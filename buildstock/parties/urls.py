from django.urls import path
from .views import (
    customer_list_create, customer_detail, customer_orders,
    supplier_list_create, supplier_detail,
)

urlpatterns = [
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:pk>/orders/', customer_orders, name='customer-orders'),
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/<int:pk>/', supplier_detail, name='supplier-detail'),
]

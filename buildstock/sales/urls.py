from django.urls import path
from .views import (
    sales_order_list_create, sales_order_detail, sales_order_next_number,
    sales_order_complete, sales_order_modify, sales_order_other_charges,
    sales_order_rmc, sales_order_rmc_preview,
    sales_order_payments, sales_order_payment_detail, sales_order_payment_received,
)

urlpatterns = [
    path('sales-orders/', sales_order_list_create, name='sales-order-list-create'),
    path('sales-orders/next-number/', sales_order_next_number, name='sales-order-next-number'),
    path('sales-orders/other-charges/', sales_order_other_charges, name='sales-order-other-charges'),
    path('sales-orders/rmc/', sales_order_rmc, name='sales-order-rmc'),
    path('sales-orders/rmc/preview/', sales_order_rmc_preview, name='sales-order-rmc-preview'),
    path('sales-orders/<int:pk>/', sales_order_detail, name='sales-order-detail'),
    path('sales-orders/<int:pk>/complete/', sales_order_complete, name='sales-order-complete'),
    path('sales-orders/<int:pk>/modify/', sales_order_modify, name='sales-order-modify'),
    path('sales-orders/<int:pk>/payments/', sales_order_payments, name='sales-order-payments'),
    path('sales-orders/<int:pk>/payments/<int:payment_id>/', sales_order_payment_detail, name='sales-order-payment-detail'),
    path('sales-orders/<int:pk>/payments/<int:payment_id>/received/', sales_order_payment_received, name='sales-order-payment-received'),
]

from django.urls import path
from .views import (
    purchase_order_list_create, purchase_order_detail, purchase_order_approve,
    purchase_order_deliver, purchase_order_partial_deliver,
    purchase_order_payments, purchase_order_payment_detail, purchase_order_payment_received,
)

urlpatterns = [
    path('purchase-orders/', purchase_order_list_create, name='purchase-order-list-create'),
    path('purchase-orders/<int:pk>/', purchase_order_detail, name='purchase-order-detail'),
    path('purchase-orders/<int:pk>/approve/', purchase_order_approve, name='purchase-order-approve'),
    path('purchase-orders/<int:pk>/deliver/', purchase_order_deliver, name='purchase-order-deliver'),
    path('purchase-orders/<int:pk>/partial-deliver/', purchase_order_partial_deliver, name='purchase-order-partial-deliver'),
    path('purchase-orders/<int:pk>/payments/', purchase_order_payments, name='purchase-order-payments'),
    path('purchase-orders/<int:pk>/payments/<int:payment_id>/', purchase_order_payment_detail, name='purchase-order-payment-detail'),
    path('purchase-orders/<int:pk>/payments/<int:payment_id>/received/', purchase_order_payment_received, name='purchase-order-payment-received'),
]

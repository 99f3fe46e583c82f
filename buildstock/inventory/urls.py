from django.urls import path
from .views import (
    stock_list_create, stock_detail, stock_remove, stock_removals,
    stock_missing, stock_price,
)

urlpatterns = [
    path('stocks/', stock_list_create, name='stock-list-create'),
    path('stocks/<int:pk>/', stock_detail, name='stock-detail'),
    path('stocks/<int:pk>/remove/', stock_remove, name='stock-remove'),
    path('stocks/<int:pk>/removals/', stock_removals, name='stock-removals'),
    path('stocks/<int:pk>/missing/', stock_missing, name='stock-missing'),
    path('stocks/<int:pk>/price/', stock_price, name='stock-price'),
]

from django.urls import path
from .views import (
    category_list_create, category_detail,
    product_list_create, product_detail, product_stocks, product_sales,
)

urlpatterns = [
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/stocks/', product_stocks, name='product-stocks'),
    path('products/<int:pk>/sales/', product_sales, name='product-sales'),
]

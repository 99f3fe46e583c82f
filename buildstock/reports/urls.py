from django.urls import path
from .views import dashboard, weekly_sales, outstanding_payments, sales_report, pdc_payments

urlpatterns = [
    path('reports/dashboard/', dashboard, name='report-dashboard'),
    path('reports/weekly-sales/', weekly_sales, name='report-weekly-sales'),
    path('reports/outstanding/', outstanding_payments, name='report-outstanding'),
    path('reports/sales/', sales_report, name='report-sales'),
    path('reports/pdc/', pdc_payments, name='report-pdc'),
]

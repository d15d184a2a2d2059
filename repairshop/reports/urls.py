from django.urls import path
from .views import dashboard, revenue_by_month, services_by_status, services_by_type, fiscal_summary

urlpatterns = [
    path('reports/dashboard/', dashboard, name='report-dashboard'),
    path('reports/revenue-by-month/', revenue_by_month, name='report-revenue-by-month'),
    path('reports/services-by-status/', services_by_status, name='report-services-by-status'),
    path('reports/services-by-type/', services_by_type, name='report-services-by-type'),
    path('reports/fiscal-summary/', fiscal_summary, name='report-fiscal-summary'),
]

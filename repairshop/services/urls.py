from django.urls import path
from .views import service_list_create, service_detail, service_update_status, service_receipt

urlpatterns = [
    path('services/', service_list_create, name='service-list-create'),
    path('services/<int:pk>/', service_detail, name='service-detail'),
    path('services/<int:pk>/status/', service_update_status, name='service-update-status'),
    path('services/<int:pk>/receipt/', service_receipt, name='service-receipt'),
]

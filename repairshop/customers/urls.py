from django.urls import path
from .views import customer_list_create, customer_detail, customer_contact, customer_history

urlpatterns = [
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:pk>/contact/', customer_contact, name='customer-contact'),
    path('customers/<int:pk>/history/', customer_history, name='customer-history'),
]

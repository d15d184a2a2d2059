from django.urls import path
from .views import (
    part_list_create, part_detail, part_adjust_stock, part_movements,
    stock_movement_list, part_categories
)

urlpatterns = [
    path('parts/', part_list_create, name='part-list-create'),
    path('parts/categories/', part_categories, name='part-categories'),
    path('parts/<int:pk>/', part_detail, name='part-detail'),
    path('parts/<int:pk>/adjust-stock/', part_adjust_stock, name='part-adjust-stock'),
    path('parts/<int:pk>/movements/', part_movements, name='part-movements'),
    path('stock-movements/', stock_movement_list, name='stock-movement-list'),
]

from django.urls import path
from .views import (
    fiscal_document_list_create, fiscal_document_detail, fiscal_document_issue, fiscal_document_cancel,
    fiscal_document_reissue, fiscal_document_check_status, fiscal_document_render, fiscal_document_download,
    fiscal_document_share, fiscal_document_events, fiscal_event_list,
)

urlpatterns = [
    path('fiscal-documents/', fiscal_document_list_create, name='fiscal-document-list-create'),
    path('fiscal-documents/events/', fiscal_event_list, name='fiscal-event-list'),
    path('fiscal-documents/<int:pk>/', fiscal_document_detail, name='fiscal-document-detail'),
    path('fiscal-documents/<int:pk>/issue/', fiscal_document_issue, name='fiscal-document-issue'),
    path('fiscal-documents/<int:pk>/cancel/', fiscal_document_cancel, name='fiscal-document-cancel'),
    path('fiscal-documents/<int:pk>/reissue/', fiscal_document_reissue, name='fiscal-document-reissue'),
    path('fiscal-documents/<int:pk>/check-status/', fiscal_document_check_status, name='fiscal-document-check-status'),
    path('fiscal-documents/<int:pk>/render/', fiscal_document_render, name='fiscal-document-render'),
    path('fiscal-documents/<int:pk>/download/', fiscal_document_download, name='fiscal-document-download'),
    path('fiscal-documents/<int:pk>/share/', fiscal_document_share, name='fiscal-document-share'),
    path('fiscal-documents/<int:pk>/events/', fiscal_document_events, name='fiscal-document-events'),
]

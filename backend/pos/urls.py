from django.urls import path
from .views import (
    transaction_list_create, transaction_detail, transaction_complete, transaction_void,
    transaction_sync_status, transaction_totals_preview,
)

urlpatterns = [
    path('pos/transactions/', transaction_list_create, name='pos-transaction-list-create'),
    path('pos/transactions/totals/', transaction_totals_preview, name='pos-transaction-totals'),
    path('pos/transactions/<int:pk>/', transaction_detail, name='pos-transaction-detail'),
    path('pos/transactions/<int:pk>/complete/', transaction_complete, name='pos-transaction-complete'),
    path('pos/transactions/<int:pk>/void/', transaction_void, name='pos-transaction-void'),
    path('pos/transactions/<int:pk>/sync/', transaction_sync_status, name='pos-transaction-sync'),
]

from django.urls import path
from .views import (
    account_list_create, account_detail, account_ledger, trial_balance,
    journal_entry_list_create, journal_entry_detail, journal_entry_post, journal_entry_void,
    period_list_create, period_close, period_reopen,
)

urlpatterns = [
    path('accounting/accounts/', account_list_create, name='account-list-create'),
    path('accounting/accounts/<int:pk>/', account_detail, name='account-detail'),
    path('accounting/accounts/<int:pk>/ledger/', account_ledger, name='account-ledger'),
    path('accounting/trial-balance/', trial_balance, name='trial-balance'),
    path('accounting/journal-entries/', journal_entry_list_create, name='journal-entry-list-create'),
    path('accounting/journal-entries/<int:pk>/', journal_entry_detail, name='journal-entry-detail'),
    path('accounting/journal-entries/<int:pk>/post/', journal_entry_post, name='journal-entry-post'),
    path('accounting/journal-entries/<int:pk>/void/', journal_entry_void, name='journal-entry-void'),
    path('accounting/periods/', period_list_create, name='fiscal-period-list-create'),
    path('accounting/periods/<int:pk>/close/', period_close, name='fiscal-period-close'),
    path('accounting/periods/<int:pk>/reopen/', period_reopen, name='fiscal-period-reopen'),
]

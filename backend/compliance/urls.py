from django.urls import path
from .views import store_compliance, compliance_overview, compliance_defaults, vat_calculator

urlpatterns = [
    path('compliance/', compliance_overview, name='compliance-overview'),
    path('compliance/defaults/', compliance_defaults, name='compliance-defaults'),
    path('compliance/vat/', vat_calculator, name='compliance-vat'),
    path('stores/<int:store_id>/compliance/', store_compliance, name='store-compliance'),
]

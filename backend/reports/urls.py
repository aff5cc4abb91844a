from django.urls import path
from . import views

urlpatterns = [
    path('reports/sales-summary/', views.sales_summary, name='sales-summary'),
    path('reports/top-products/', views.top_products, name='top-products'),
    path('reports/inventory-summary/', views.inventory_summary, name='inventory-summary'),
    path('reports/movement-summary/', views.movement_summary, name='movement-summary'),
]

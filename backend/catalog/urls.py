from django.urls import path
from .views import (
    category_list_create, category_detail,
    product_list_create, product_detail, product_availability_detail, store_product_availability,
)

urlpatterns = [
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/availability/', product_availability_detail, name='product-availability'),
    path('stores/<int:store_id>/availability/', store_product_availability, name='store-product-availability'),
]

from django.urls import path
from .views import (
    template_list_create, template_detail, template_import, template_export,
    template_csv_example, template_categories, template_deploy,
    template_ingredient_matches, recipes_clear,
    recipe_list, recipe_detail, recipe_ingredient_mapping,
)

urlpatterns = [
    path('recipe-templates/', template_list_create, name='recipe-template-list-create'),
    path('recipe-templates/import/', template_import, name='recipe-template-import'),
    path('recipe-templates/export/', template_export, name='recipe-template-export'),
    path('recipe-templates/example-csv/', template_csv_example, name='recipe-template-example-csv'),
    path('recipe-templates/categories/', template_categories, name='recipe-template-categories'),
    path('recipe-templates/deploy/', template_deploy, name='recipe-template-deploy'),
    path('recipe-templates/<int:pk>/', template_detail, name='recipe-template-detail'),
    path('recipe-templates/<int:pk>/matches/', template_ingredient_matches, name='recipe-template-matches'),
    path('recipes/', recipe_list, name='recipe-list'),
    path('recipes/clear/', recipes_clear, name='recipe-clear'),
    path('recipes/<int:pk>/', recipe_detail, name='recipe-detail'),
    path('recipes/<int:pk>/ingredients/<int:ingredient_id>/', recipe_ingredient_mapping, name='recipe-ingredient-mapping'),
]

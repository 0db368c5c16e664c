from django.urls import path
from . import views

app_name = 'prospects'

urlpatterns = [
    path('', views.prospect_list_view, name='prospect_list'),
    path('pipeline/', views.prospect_pipeline_view, name='prospect_pipeline'),
    path('create/', views.prospect_create_view, name='prospect_create'),
    path('search/', views.prospect_search_view, name='prospect_search'),
    path('export/', views.prospect_export_view, name='prospect_export'),
    path('<int:pk>/', views.prospect_detail_view, name='prospect_detail'),
    path('<int:pk>/edit/', views.prospect_edit_view, name='prospect_edit'),
    path('<int:pk>/change-phase/', views.prospect_change_phase_view, name='prospect_change_phase'),
]

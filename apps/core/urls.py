from django.urls import path
from . import views


app_name = 'core'

urlpatterns = [
    path('', views.dashboard_view, name='dashboard'),
    path('metrics/', views.metrics_view, name='metrics'),
    path('team/', views.team_view, name='team'),
    path('team/<int:user_id>/logs/', views.user_logs_view, name='user_logs'),
]

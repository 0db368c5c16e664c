from django.urls import path
from . import views

app_name = 'activities'

urlpatterns = [
    path('create/', views.activity_create_view, name='activity_create'),
    path('generate-daily-calls/', views.generate_daily_calls_view, name='generate_daily_calls'),
    path('<int:pk>/', views.activity_detail_view, name='activity_detail'),
    path('<int:pk>/outcome/', views.activity_outcome_view, name='activity_outcome'),
    path('<int:pk>/next-activity/', views.activity_next_activity_view, name='activity_next_activity'),
    path('<int:pk>/unblock/', views.activity_unblock_view, name='activity_unblock'),
    path('<int:pk>/quick-update/', views.activity_quick_update_view, name='activity_quick_update'),
    path('<int:pk>/edit/', views.activity_edit_view, name='activity_edit'),
]

from django.urls import path
from . import views

app_name = 'accounts'

urlpatterns = [

    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),
    path('me/', views.me_view, name='me'),
    path('users/', views.user_list_view, name='user_list'),
    path('users/salespersons/', views.salesperson_list_view, name='salesperson_list'),
    path('users/<int:pk>/stats/', views.user_stats_view, name='user_stats'),
]

from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    path('login/', views.UserLoginView.as_view(), name='login'),
    path('logout/', views.UserLogoutView.as_view(), name='logout'),
    path('profile/', views.ProfileEditView.as_view(), name='profile'),
    path('manage/', views.UserManagementView.as_view(), name='user_management'),
]

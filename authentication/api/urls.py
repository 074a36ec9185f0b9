from django.urls import path
from authentication.api import views

urlpatterns = [
    path('login/', views.LoginView.as_view(), name='login'),
    path('token/refresh/', views.TokenRefreshView.as_view(), name='token-refresh'),
    path('me/', views.GetUserView.as_view(), name='current-user'),
]

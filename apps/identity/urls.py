from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from . import views

app_name = 'identity'

urlpatterns = [
    # Auth
    path('register/', views.RegisterView.as_view(), name='register'),
    path('login/', views.LoginView.as_view(), name='login'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Email verification
    path('verify-email/', views.VerifyEmailView.as_view(), name='verify_email'),
    path('resend-verification/', views.ResendVerificationEmailView.as_view(), name='resend_verification'),

    # Profile
    path('profile/', views.ProfileView.as_view(), name='profile'),

    # Addresses
    path('addresses/', views.AddressListCreateView.as_view(), name='address_list'),
    path('addresses/<uuid:pk>/', views.AddressDetailView.as_view(), name='address_detail'),

    # Admin
    path('admin/users/', views.UserListAdminView.as_view(), name='admin_user_list'),
    path('admin/users/<uuid:pk>/', views.UserDetailAdminView.as_view(), name='admin_user_detail'),
    path('admin/addresses/', views.AddressListAdminView.as_view(), name='admin_address_list'),
    path('admin/addresses/<uuid:pk>/verify/', views.AddressVerifyAdminView.as_view(), name='admin_address_verify'),
]

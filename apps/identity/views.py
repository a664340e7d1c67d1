from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework.throttling import AnonRateThrottle
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from apps.utils.permissions import IsAdminRole
from apps.utils.security import SecurityAuditLogger
from .serializers import (
    UserRegisterSerializer, UserSerializer, UserUpdateSerializer,
    AdminUserUpdateSerializer, VerifyEmailSerializer,
    EmailTokenObtainPairSerializer, AddressSerializer,
    AdminAddressSerializer, AddressVerifySerializer,
)
from .services import EmailVerificationService
from .models import Address

User = get_user_model()


class LoginThrottle(AnonRateThrottle):
    """Strict throttle for login attempts."""
    scope = 'login'


class RegisterThrottle(AnonRateThrottle):
    """Throttle for registration - prevent mass account creation."""
    scope = 'register'


class RegisterView(generics.CreateAPIView):
    """User registration with email verification code."""
    queryset = User.objects.all()
    permission_classes = (permissions.AllowAny,)
    serializer_class = UserRegisterSerializer
    throttle_classes = [RegisterThrottle]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        EmailVerificationService.send_code(user)

        refresh = RefreshToken.for_user(user)
        return Response({
            'success': True,
            'message': 'Registration successful. Check your email for the verification code.',
            'data': {
                'user': UserSerializer(user).data,
                'refresh': str(refresh),
                'access': str(refresh.access_token),
            },
        }, status=status.HTTP_201_CREATED)


class LoginView(TokenObtainPairView):
    """Login with email and password."""
    serializer_class = EmailTokenObtainPairSerializer
    throttle_classes = [LoginThrottle]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.user

        # Unverified accounts get a fresh code on every login
        if not user.is_email_verified:
            EmailVerificationService.send_code(user)

        return Response({'success': True, 'data': serializer.validated_data})


class VerifyEmailView(APIView):
    """Verify email with the 6-digit code."""
    permission_classes = (permissions.IsAuthenticated,)

    def post(self, request):
        serializer = VerifyEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ok, error = EmailVerificationService.verify_code(request.user, serializer.validated_data['code'])
        if not ok:
            return Response({'success': False, 'message': error, 'error': 'invalid_code'},
                            status=status.HTTP_400_BAD_REQUEST)

        return Response({'success': True, 'message': 'Email verified successfully'})


class ResendVerificationEmailView(APIView):
    """Resend verification code."""
    permission_classes = (permissions.IsAuthenticated,)

    def post(self, request):
        user = request.user

        if user.is_email_verified:
            return Response({'success': True, 'message': 'Email already verified'})

        if EmailVerificationService.send_code(user):
            return Response({'success': True, 'message': 'Verification code sent'})
        return Response({'success': False, 'message': 'Could not send email', 'error': 'email_failed'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class ProfileView(generics.RetrieveUpdateAPIView):
    """View and update user profile."""
    permission_classes = (permissions.IsAuthenticated,)

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return UserUpdateSerializer
        return UserSerializer

    def get_object(self):
        return self.request.user

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': UserSerializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response({'success': True, 'message': 'Profile updated', 'data': UserSerializer(user).data})


# User Address Views
class AddressListCreateView(generics.ListCreateAPIView):
    """List and create the caller's saved addresses."""
    serializer_class = AddressSerializer
    permission_classes = (permissions.IsAuthenticated,)

    def get_queryset(self):
        return Address.objects.filter(user=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(user=request.user)
        return Response({'success': True, 'message': 'Address created', 'data': serializer.data},
                        status=status.HTTP_201_CREATED)


class AddressDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Retrieve, update, delete one of the caller's addresses."""
    serializer_class = AddressSerializer
    permission_classes = (permissions.IsAuthenticated,)

    def get_queryset(self):
        return Address.objects.filter(user=self.request.user)

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Address updated', 'data': serializer.data})

    def destroy(self, request, *args, **kwargs):
        self.get_object().delete()
        return Response({'success': True, 'message': 'Address deleted'})


# Admin Views
class UserListAdminView(generics.ListAPIView):
    """Admin: List all users."""
    queryset = User.objects.order_by('-date_joined')
    serializer_class = UserSerializer
    permission_classes = (IsAdminRole,)
    filterset_fields = ('is_staff', 'is_active', 'is_email_verified')


class UserDetailAdminView(generics.RetrieveUpdateAPIView):
    """Admin: View or update an individual user."""
    queryset = User.objects.all()
    permission_classes = (IsAdminRole,)

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return AdminUserUpdateSerializer
        return UserSerializer

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': UserSerializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        user = self.get_object()
        serializer = self.get_serializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        SecurityAuditLogger().log_admin_action('update_user', str(request.user.id), {
            'target': str(user.id), 'fields': sorted(serializer.validated_data.keys())
        })
        return Response({'success': True, 'message': 'User updated', 'data': UserSerializer(user).data})


class AddressListAdminView(generics.ListAPIView):
    """Admin: List every saved address."""
    queryset = Address.objects.select_related('user').order_by('-created_at')
    serializer_class = AdminAddressSerializer
    permission_classes = (IsAdminRole,)
    filterset_fields = ('type', 'is_verified', 'country')


class AddressVerifyAdminView(APIView):
    """Admin: Mark an address verified (or revoke verification)."""
    permission_classes = (IsAdminRole,)

    def put(self, request, pk):
        address = get_object_or_404(Address, pk=pk)
        serializer = AddressVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if serializer.validated_data['is_verified']:
            address.mark_verified(serializer.validated_data.get('verification_details'))
        else:
            address.is_verified = False
            address.verification_details = serializer.validated_data.get('verification_details')
            address.save(update_fields=['is_verified', 'verification_details', 'updated_at'])

        SecurityAuditLogger().log_admin_action('verify_address', str(request.user.id), {
            'address': str(address.id), 'is_verified': address.is_verified
        })
        return Response({
            'success': True,
            'message': 'Address verification updated',
            'data': AdminAddressSerializer(address).data,
        })

    post = put

from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from .models import Address

User = get_user_model()


class UserRegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    username = serializers.CharField(required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ('email', 'username', 'password', 'first_name', 'last_name', 'phone', 'gender')

    def validate_email(self, value):
        email = value.lower().strip()
        if User.objects.filter(email=email).exists():
            raise serializers.ValidationError('Email already registered')
        return email

    def validate(self, attrs):
        if not attrs.get('username'):
            attrs['username'] = attrs['email']
        if User.objects.filter(username=attrs['username']).exists():
            raise serializers.ValidationError({'username': 'Username already taken'})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password')
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.ReadOnlyField()
    is_driver = serializers.ReadOnlyField()

    class Meta:
        model = User
        fields = ('id', 'email', 'username', 'first_name', 'last_name', 'full_name',
                  'phone', 'gender', 'is_email_verified', 'is_staff', 'is_driver', 'date_joined')
        read_only_fields = ('id', 'email', 'is_email_verified', 'is_staff', 'date_joined')


class UserUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('first_name', 'last_name', 'phone', 'gender')


class AdminUserUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('first_name', 'last_name', 'phone', 'gender', 'is_active', 'is_staff', 'is_email_verified')


class VerifyEmailSerializer(serializers.Serializer):
    code = serializers.RegexField(r'^\d{6}$', error_messages={'invalid': 'Code must be 6 digits'})


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        from .services import AuthService

        email = attrs.get('email', '').lower()
        password = attrs.get('password')

        user, error = AuthService.authenticate_user(email, password, self.context.get('request'))
        if error:
            raise serializers.ValidationError({'detail': error})

        attrs['email'] = email
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data


class AddressSerializer(serializers.ModelSerializer):
    full_address = serializers.ReadOnlyField()
    latitude = serializers.DecimalField(
        max_digits=10, decimal_places=8, min_value=-90, max_value=90,
        required=False, allow_null=True
    )
    longitude = serializers.DecimalField(
        max_digits=11, decimal_places=8, min_value=-180, max_value=180,
        required=False, allow_null=True
    )

    class Meta:
        model = Address
        fields = ('id', 'street', 'unit', 'city', 'state', 'zip_code', 'country',
                  'latitude', 'longitude', 'type', 'is_verified', 'verification_details',
                  'full_address', 'created_at', 'updated_at')
        read_only_fields = ('id', 'is_verified', 'verification_details', 'created_at', 'updated_at')


class AdminAddressSerializer(AddressSerializer):
    user = serializers.EmailField(source='user.email', read_only=True)

    class Meta(AddressSerializer.Meta):
        fields = AddressSerializer.Meta.fields + ('user',)


class AddressVerifySerializer(serializers.Serializer):
    is_verified = serializers.BooleanField(default=True)
    verification_details = serializers.JSONField(required=False, allow_null=True)

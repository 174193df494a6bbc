from django.contrib.auth import get_user_model
from firebase_admin import auth
from rest_framework import authentication
from rest_framework import exceptions
from .firebase_admin_client import get_app

User = get_user_model()

class FirebaseAuthentication(authentication.BaseAuthentication):
    """DRF authentication backend validating Firebase ID tokens.

    The token's uid is the account id; the Django user acting for that
    account has the uid as its username.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        """Validate Authorization header token and return (user, decoded_token)."""
        auth_header = request.META.get('HTTP_AUTHORIZATION')
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0] != self.keyword:
            return None

        try:
            get_app()
            decoded_token = auth.verify_id_token(parts[1])
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
                auth.RevokedIdTokenError, auth.CertificateFetchError):
            raise exceptions.AuthenticationFailed('Invalid Firebase token')

        uid = decoded_token.get("uid")
        try:
            return (User.objects.get(username=uid), decoded_token)
        except User.DoesNotExist:
            raise exceptions.AuthenticationFailed('No user for this account')

    def authenticate_header(self, request):
        return self.keyword

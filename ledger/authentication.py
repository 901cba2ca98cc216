from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from rest_framework.authentication import TokenAuthentication
from rest_framework.exceptions import AuthenticationFailed


def token_ttl():
    return timedelta(hours=getattr(settings, "TOKEN_TTL_HOURS", 24))


def token_expires_at(token):
    return token.created + token_ttl()


class ExpiringTokenAuthentication(TokenAuthentication):
    """`Authorization: Bearer <key>` tokens that stop working after TOKEN_TTL_HOURS."""

    keyword = "Bearer"

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)

        if token_expires_at(token) <= timezone.now():
            token.delete()
            raise AuthenticationFailed(_("Token has expired."))

        return user, token

"""Production settings."""
from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F401,F403

DEBUG = False
ENABLE_DJANGO_ADMIN = env.bool("ENABLE_DJANGO_ADMIN", default=False)  # noqa: F405

# Security
SECURE_CONTENT_TYPE_NOSNIFF = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)  # noqa: F405
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])  # noqa: F405
USE_X_FORWARDED_HOST = env.bool("USE_X_FORWARDED_HOST", default=True)  # noqa: F405
if env.bool("USE_X_FORWARDED_PROTO", default=True):  # noqa: F405
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

if not SECURE_SSL_REDIRECT:
    raise ImproperlyConfigured(
        "SECURE_SSL_REDIRECT must be enabled in production.",
    )

if PRO_MONTHLY_PRICE <= 0:  # noqa: F405
    raise ImproperlyConfigured("PRO_MONTHLY_PRICE must be a positive amount.")
if RETENTION_OFFER_PRICE >= PRO_MONTHLY_PRICE:  # noqa: F405
    raise ImproperlyConfigured("RETENTION_OFFER_PRICE must be lower than PRO_MONTHLY_PRICE.")

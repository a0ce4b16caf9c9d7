"""
Django settings for the group-buying backend.

Everything environment specific comes from the process environment or a
.env file at the repository root.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR.parent / ".env")

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "users",
    "groupbuying",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "bazaar_backend.urls"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("BAZAAR_DB_PATH", str(BASE_DIR / "db.sqlite3")),
        # seconds sqlite waits on a locked database before OperationalError
        "OPTIONS": {"timeout": float(os.getenv("BAZAAR_STORE_TIMEOUT_SECONDS", "5"))},
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# No session or token auth: callers identify themselves with supplier_id / vendor_id.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "EXCEPTION_HANDLER": "groupbuying.views.domain_exception_handler",
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "orders": {"handlers": ["console"], "level": os.getenv("BAZAAR_LOG_LEVEL", "INFO")},
        "lifecycle": {"handlers": ["console"], "level": os.getenv("BAZAAR_LOG_LEVEL", "INFO")},
        "groupbuying": {"handlers": ["console"], "level": os.getenv("BAZAAR_LOG_LEVEL", "INFO")},
        "routing": {"handlers": ["console"], "level": "WARNING"},
    },
}

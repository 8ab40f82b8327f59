"""
Django settings for the backoffice project.
Django 5.x
Render/PostgreSQL in production, SQLite for local development and tests.
"""

from pathlib import Path
import os
from corsheaders.defaults import default_headers

# --------------------------------------------------
# Load .env file (safe for local, ignored on Render)
# --------------------------------------------------
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def env_float(name, default):
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


# --------------------------------------------------
# Core settings
# --------------------------------------------------
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "django-insecure-dev-key"
)

DEBUG = os.environ.get("DEBUG", "0") == "1"

ALLOWED_HOSTS = [
    h.strip()
    for h in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1,0.0.0.0,testserver").split(",")
    if h.strip()
]

CSRF_TRUSTED_ORIGINS = [
    o.strip()
    for o in os.environ.get("CSRF_TRUSTED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

# --------------------------------------------------
# Applications
# --------------------------------------------------
INSTALLED_APPS = [
    "jazzmin",
    "cashier",

    # Third party
    "corsheaders",
    "rest_framework",
    "django_extensions",
    "rest_framework.authtoken",

    # Django default
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

# --------------------------------------------------
# DRF settings (Token Auth)
# --------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.TokenAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
}

# --------------------------------------------------
# Middleware
# --------------------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",

    # CORS must be placed before CommonMiddleware
    "corsheaders.middleware.CorsMiddleware",

    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backoffice.urls"
WSGI_APPLICATION = "backoffice.wsgi.application"
AUTH_USER_MODEL = "cashier.CustomUser"

# --------------------------------------------------
# CORS configuration
# --------------------------------------------------
CORS_ALLOW_ALL_ORIGINS = False

CORS_ALLOWED_ORIGINS = CSRF_TRUSTED_ORIGINS

# Allow any Vercel preview subdomain
CORS_ALLOWED_ORIGIN_REGEXES = [
    r"^https:\/\/.*\.vercel\.app$",
]

CORS_ALLOW_METHODS = ["GET", "OPTIONS", "POST"]
CORS_ALLOW_HEADERS = list(default_headers) + ["authorization"]
CORS_ALLOW_CREDENTIALS = False

# --------------------------------------------------
# Database
# Auto-switch:
# - Render: PostgreSQL via DATABASE_URL
# - Local: SQLite
# SQLite has no row locks; concurrent closes are only exercised on Postgres.
# --------------------------------------------------
DATABASE_URL = os.environ.get("DATABASE_URL", "").strip()

if DATABASE_URL:
    import dj_database_url
    DATABASES = {
        "default": dj_database_url.parse(
            DATABASE_URL,
            conn_max_age=600,
            ssl_require=not DEBUG,
        )
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# --------------------------------------------------
# Templates
# --------------------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# --------------------------------------------------
# Internationalization
# --------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "Asia/Jakarta")
USE_I18N = True
USE_TZ = True

# --------------------------------------------------
# Static files
# --------------------------------------------------
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# --------------------------------------------------
# Logging
# --------------------------------------------------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

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
        "cashier": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "django.request": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}

# --------------------------------------------------
# Cashier shift
# --------------------------------------------------
SHIFT_LIST_LIMIT = env_int("SHIFT_LIST_LIMIT", 200)

# closing summary over a WhatsApp HTTP gateway; empty URL disables sending
WHATSAPP_GATEWAY_URL = os.environ.get("WHATSAPP_GATEWAY_URL", "").strip()
WHATSAPP_GATEWAY_TOKEN = os.environ.get("WHATSAPP_GATEWAY_TOKEN", "").strip()
WHATSAPP_DEFAULT_RECIPIENT = os.environ.get("WHATSAPP_DEFAULT_RECIPIENT", "").strip()
WHATSAPP_MAX_RETRIES = env_int("WHATSAPP_MAX_RETRIES", 3)
WHATSAPP_RETRY_DELAY = env_float("WHATSAPP_RETRY_DELAY", 2.0)
WHATSAPP_TIMEOUT = env_float("WHATSAPP_TIMEOUT", 15)

# --------------------------------------------------
# Jazzmin configuration
# --------------------------------------------------
JAZZMIN_SETTINGS = {
    "site_title": "Kasir Admin",
    "site_header": "Kasir Back Office",
    "welcome_sign": "Selamat Datang di Back Office Kasir",
    "site_brand": "Kasir",
    "show_sidebar": True,
    "navigation_expanded": True,
    "icons": {
        "cashier.Shift": "fas fa-cash-register",
        "cashier.ShiftLog": "fas fa-history",
        "cashier.Transaction": "fas fa-receipt",
        "cashier.CustomUser": "fas fa-user-shield",
        "auth.Group": "fas fa-users",
    },
    "custom_links": {
        "cashier": [
            {"name": "Shift Export", "url": "/admin/reports/shifts/export/", "icon": "fas fa-file-excel", "permissions": ["cashier.view_shift"]},
        ]
    },
    "order_with_respect_to": [
        "cashier.Shift", "cashier.ShiftLog", "cashier.Transaction",
        "auth.Group", "cashier.CustomUser",
    ],
    "hide_apps": ["authtoken"],
    "hide_models": ["auth.User"],
    "show_ui_builder": False,
}

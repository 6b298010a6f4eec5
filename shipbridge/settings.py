"""
Django settings for the shipbridge project.

Every value comes from the environment (or a local ``.env`` file) through
python-decouple. Application code does not read these directly; the orders app
copies what it needs into ``orders.config.ServiceConfig`` once at startup.
"""
from pathlib import Path

from decouple import Csv, config

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config("SECRET_KEY", default="django-insecure-change-me")
DEBUG = config("DEBUG", default=False, cast=bool)
ALLOWED_HOSTS = config("ALLOWED_HOSTS", default="localhost,127.0.0.1", cast=Csv())

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "corsheaders",
    "rest_framework",
    "orders",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "shipbridge.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "shipbridge.wsgi.application"

# Database
DB_ENGINE = config("DB_ENGINE", default="sqlite")

if DB_ENGINE == "postgres":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": config("DB_NAME", default="shipbridge"),
            "USER": config("DB_USER", default="postgres"),
            "PASSWORD": config("DB_PASSWORD", default=""),
            "HOST": config("DB_HOST", default="localhost"),
            "PORT": config("DB_PORT", default="5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": config("DB_NAME", default=str(BASE_DIR / "db.sqlite3")),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# Django REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "orders.exceptions.api_exception_handler",
}

# CORS: the operator UI origin plus local development
CORS_ALLOWED_ORIGIN = config("CORS_ALLOWED_ORIGIN", default="")
CORS_ALLOWED_ORIGINS = [
    origin for origin in (CORS_ALLOWED_ORIGIN, "http://localhost:3000") if origin
]

# Webhook security
WEBHOOK_SECRET = config("WEBHOOK_SECRET", default="")

# Shopify Admin API
SHOPIFY_SHOP_URL = config("SHOPIFY_SHOP_URL", default="")
SHOPIFY_ADMIN_TOKEN = config("SHOPIFY_ADMIN_TOKEN", default="")
SHOPIFY_API_VERSION = config("SHOPIFY_API_VERSION", default="2024-01")
SHOPIFY_TIMEOUT = config("SHOPIFY_TIMEOUT", default=10.0, cast=float)

# Posti carrier API
CARRIER_API_URL = config("CARRIER_API_URL", default="https://sbxgw.ecosystem.posti.fi")
CARRIER_API_TOKEN = config("CARRIER_API_TOKEN", default="")
CARRIER_TIMEOUT = config("CARRIER_TIMEOUT", default=10.0, cast=float)
CARRIER_SERVICE_POINT_SERVICE = config("CARRIER_SERVICE_POINT_SERVICE", default="2103")
CARRIER_HOME_DELIVERY_SERVICE = config("CARRIER_HOME_DELIVERY_SERVICE", default="2104")
CARRIER_SENDER = {
    "name": config("CARRIER_SENDER_NAME", default=""),
    "address1": config("CARRIER_SENDER_ADDRESS1", default=""),
    "postcode": config("CARRIER_SENDER_POSTCODE", default=""),
    "city": config("CARRIER_SENDER_CITY", default=""),
    "country_code": config("CARRIER_SENDER_COUNTRY_CODE", default="FI"),
    "phone": config("CARRIER_SENDER_PHONE", default=""),
    "email": config("CARRIER_SENDER_EMAIL", default=""),
}

# Order ledger
PICKUP_POINT_SHIPPING_TITLE = config(
    "PICKUP_POINT_SHIPPING_TITLE", default="Standard - Pickup Point"
)
ORDER_STORE_BACKEND = config("ORDER_STORE_BACKEND", default="database")
ORDER_STORE_CAPACITY = config("ORDER_STORE_CAPACITY", default=50, cast=int)
ORDERS_PAGE_SIZE = config("ORDERS_PAGE_SIZE", default=50, cast=int)

# OpenTelemetry
OTEL_ENABLED = config("OTEL_ENABLED", default=False, cast=bool)
OTEL_SERVICE_NAME = config("OTEL_SERVICE_NAME", default="shipbridge")
OTEL_EXPORTER_OTLP_ENDPOINT = config(
    "OTEL_EXPORTER_OTLP_ENDPOINT", default="http://localhost:4318/v1/traces"
)

LOG_LEVEL = config("LOG_LEVEL", default="INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

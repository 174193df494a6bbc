"""
Django settings for the graphsite project.

Values that differ between deployments are read from environment
variables so the same module serves local development, tests and
production.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_truthy(name, default="false"):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-followgraph-dev-key")

DEBUG = _env_truthy("DJANGO_DEBUG", "true")

ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'socialgraph',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'graphsite.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'graphsite.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv("DJANGO_DB_PATH", str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-gb'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'socialgraph.authentication.FirebaseAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
}

# Social graph engine. See socialgraph.conf for the defaults.
SOCIALGRAPH = {
    "STORE_BACKEND": os.getenv("SOCIALGRAPH_STORE_BACKEND", "orm"),
    "NOTIFICATION_BACKEND": os.getenv("SOCIALGRAPH_NOTIFICATION_BACKEND", "orm"),
    "MAX_TRANSACTION_ATTEMPTS": int(os.getenv("SOCIALGRAPH_MAX_TRANSACTION_ATTEMPTS", "5")),
    "RETRY_BACKOFF_SECONDS": float(os.getenv("SOCIALGRAPH_RETRY_BACKOFF_SECONDS", "0.05")),
    "NOTIFY_ASYNC": _env_truthy("SOCIALGRAPH_NOTIFY_ASYNC", "true"),
    "NOTIFY_MAX_PENDING": int(os.getenv("SOCIALGRAPH_NOTIFY_MAX_PENDING", "1000")),
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'loggers': {
        'socialgraph': {
            'handlers': ['console'],
            'level': os.getenv("SOCIALGRAPH_LOG_LEVEL", "INFO"),
            'propagate': False,
        },
    },
}

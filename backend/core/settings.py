"""
Django settings for the File Vault project.

Every value that differs between environments is read from the process
environment (a local `.env` file is loaded first via python-dotenv).

All vault-specific knobs live in the FILE_VAULT dict. Application code reads
it at call time (never at import time), so tests can swap values with
override_settings.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def _env_bool(name, default=False):
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_list(name, default=''):
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-file-vault-dev-key')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = _env_bool('DJANGO_DEBUG', True)

ALLOWED_HOSTS = _env_list('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver')


# Application definition

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'files',
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

ROOT_URLCONF = 'core.urls'

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

WSGI_APPLICATION = 'core.wsgi.application'


# Database
# SQLite is enough for a single node; the unique hash constraint and the
# conditional quota UPDATE are what keep concurrent uploads consistent.

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DATABASE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# Internationalization

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True


# Static files (admin only; uploaded content is served through the API)

STATIC_URL = 'static/'


# Cache backs the DRF throttle counters (per-process locmem by default)

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'file-vault',
    }
}


# File Vault
#   STORAGE_ROOT         root of the content-addressed store (<root>/<hash[:2]>/<hash>)
#   STORAGE_QUOTA_BYTES  limit given to a quota account the first time a user is seen
#   ADMIN_USER_IDS       UserId values allowed to read system-wide statistics

FILE_VAULT = {
    'STORAGE_ROOT': os.getenv('STORAGE_ROOT', str(BASE_DIR / 'storage')),
    'STORAGE_QUOTA_BYTES': int(os.getenv('STORAGE_QUOTA_BYTES', str(1024 * 1024 * 1024))),
    'USERID_THROTTLE_RATE': os.getenv('USERID_THROTTLE_RATE', '10/second'),
    'ADMIN_USER_IDS': _env_list('ADMIN_USER_IDS'),
}


# Django REST framework

REST_FRAMEWORK = {
    # Identity comes from the UserId header (see files.permissions); token
    # issuing and validation happen in front of this service.
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['files.permissions.HasUserIdHeader'],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
        'rest_framework.parsers.MultiPartParser',
        'rest_framework.parsers.FormParser',
    ],
    'DEFAULT_THROTTLE_CLASSES': ['files.throttling.UserIdRateThrottle'],
    'DEFAULT_THROTTLE_RATES': {'userid': FILE_VAULT['USERID_THROTTLE_RATE']},
    'DEFAULT_PAGINATION_CLASS': 'files.pagination.FilePagination',
    'PAGE_SIZE': 20,
    'EXCEPTION_HANDLER': 'files.exceptions.vault_exception_handler',
    'UNAUTHENTICATED_USER': None,
}


# Logging

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'vault': {
            'format': '[{levelname}] {asctime} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'vault',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'files': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'django.request': {
            'handlers': ['console'],
            'level': 'ERROR',
            'propagate': False,
        },
    },
}

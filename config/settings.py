import os
from pathlib import Path
from decouple import config, Csv


# BASE DIRECTORY
# Build paths inside the project like this: BASE_DIR / 'subdir'
# BASE_DIR points to the project root (where manage.py is)
BASE_DIR = Path(__file__).resolve().parent.parent


# SECURITY SETTINGS

# SECURITY WARNING: keep the secret key used in production secret!
# Generate new key: python -c 'from django.core.management.utils import get_random_secret_key; print(get_random_secret_key())'
SECRET_KEY = config('SECRET_KEY', default='django-insecure-CHANGE-THIS-IN-PRODUCTION')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = config('DEBUG', default=True, cast=bool)

# Format: 'domain.com,www.domain.com,api.domain.com'
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,0.0.0.0,testserver', cast=Csv())


# INSTALLED APPS

INSTALLED_APPS = [
    # Django built-in apps
    'django.contrib.admin',  # Admin interface
    'django.contrib.auth',  # Authentication framework
    'django.contrib.contenttypes',  # Content types framework
    'django.contrib.sessions',  # Session framework
    'django.contrib.messages',  # Messaging framework
    'django.contrib.staticfiles',  # Static files management

    # Third-party apps
    'corsheaders',  # CORS headers support (frontend lives on another origin)

    # Our custom apps
    # IMPORTANT: accounts must be first (custom user model)
    'apps.accounts',  # Users, roles & authentication
    'apps.core',  # Audit log, dashboard & team views
    'apps.prospects',  # Prospects & sales pipeline
    'apps.activities',  # Activities, lifecycle & daily calls
]


# MIDDLEWARE

# Each request passes through these in order (top to bottom)
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',  # must be before CommonMiddleware
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]


# URL CONFIGURATION
ROOT_URLCONF = 'config.urls'


# TEMPLATES
# Only the admin renders HTML; every other screen is a JSON endpoint
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]


# ASGI/WSGI APPLICATION
ASGI_APPLICATION = 'config.asgi.application'
WSGI_APPLICATION = 'config.wsgi.application'


# DATABASE

# PostgreSQL in production (DB_ENGINE=django.db.backends.postgresql)
# SQLite is the default for local development and the test suite
DB_ENGINE = config('DB_ENGINE', default='django.db.backends.sqlite3')

if DB_ENGINE == 'django.db.backends.sqlite3':
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': config('DB_NAME', default=str(BASE_DIR / 'db.sqlite3')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': config('DB_NAME', default='ventas_crm'),
            'USER': config('DB_USER', default='ventas_crm'),
            'PASSWORD': config('DB_PASSWORD', default='ventas_crm'),
            'HOST': config('DB_HOST', default='db'),  # 'db' is Docker service name
            'PORT': config('DB_PORT', default='5432'),

            # Keep connection open for 10 minutes
            'CONN_MAX_AGE': 600,

            'OPTIONS': {
                'connect_timeout': 10,
            }
        }
    }


# AUTHENTICATION

# Custom user model (email login + salesperson/manager role)
AUTH_USER_MODEL = 'accounts.User'

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 8,
        }
    },
]

# Login/Logout URLs
LOGIN_URL = '/accounts/login/'  # Redirect here if not authenticated
LOGIN_REDIRECT_URL = '/dashboard/'
LOGOUT_REDIRECT_URL = '/accounts/login/'


# INTERNATIONALIZATION

LANGUAGE_CODE = 'es-cr'

# Calendar days (today, overdue, this week) are computed in this zone
TIME_ZONE = config('TIME_ZONE', default='America/Costa_Rica')

USE_I18N = True

# All datetimes in database are stored in UTC
USE_TZ = True


# STATIC FILES
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# CORS HEADERS (Cross-Origin Resource Sharing)

if DEBUG:
    CORS_ALLOW_ALL_ORIGINS = True
else:
    CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='', cast=Csv())

CORS_ALLOW_CREDENTIALS = True

# Origins allowed to post with the session cookie (e.g. 'https://crm.example.com')
CSRF_TRUSTED_ORIGINS = config('CSRF_TRUSTED_ORIGINS', default='', cast=Csv())


# CELERY (Background Tasks)

CELERY_BROKER_URL = config('REDIS_URL', default='redis://redis:6379/0')
CELERY_RESULT_BACKEND = config('REDIS_URL', default='redis://redis:6379/0')

CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'

CELERY_TIMEZONE = TIME_ZONE

# Celery task time limit (5 minutes)
CELERY_TASK_TIME_LIMIT = 5 * 60
CELERY_TASK_SOFT_TIME_LIMIT = 4 * 60


# LOGGING

LOG_DIR = BASE_DIR / 'logs'
os.makedirs(LOG_DIR, exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,

    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },

    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOG_DIR / 'django.log',
            'maxBytes': 1024 * 1024 * 10,  # 10 MB
            'backupCount': 5,
            'formatter': 'verbose',
        },
    },

    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': config('LOG_LEVEL', default='INFO'),
            'propagate': True,
        },
        'apps': {  # Our custom apps
            'handlers': ['console', 'file'],
            'level': config('APPS_LOG_LEVEL', default='DEBUG'),
            'propagate': False,
        },
    },
}


# CUSTOM SETTINGS

# Session settings
SESSION_COOKIE_AGE = 86400  # 24 hours in seconds
SESSION_SAVE_EVERY_REQUEST = False

# Activity lifecycle
# Minimum length of the comment required to complete, not-complete or block
ACTIVITY_MIN_COMMENT_LENGTH = config('ACTIVITY_MIN_COMMENT_LENGTH', default=10, cast=int)
# Minimum length of the description of a mandatory next activity
ACTIVITY_MIN_NEXT_DESCRIPTION_LENGTH = config('ACTIVITY_MIN_NEXT_DESCRIPTION_LENGTH', default=5, cast=int)

# Daily calls
DAILY_CALLS_PER_DAY = config('DAILY_CALLS_PER_DAY', default=3, cast=int)
# Python weekday numbers (Monday=0): Monday to Thursday
DAILY_CALL_WEEKDAYS = (0, 1, 2, 3)

# Dashboard
DASHBOARD_WEEK_DAYS = 7


# SECURITY SETTINGS (Production)

if not DEBUG:
    SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'

    SECURE_HSTS_SECONDS = 31536000  # 1 year
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True


# DEFAULT AUTO FIELD
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

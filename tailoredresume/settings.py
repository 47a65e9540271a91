"""
Django settings for tailoredresume project.

Every value can be overridden from the environment; a local ``.env`` file is
loaded first so development setups need no exported variables.
"""
import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')

TRUTHY_ENV_VALUES = {'1', 'true', 'yes', 'on'}


def env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY_ENV_VALUES


def env_list(name: str, default=None) -> list:
    raw = os.environ.get(name, '')
    items = [item.strip() for item in raw.split(',') if item.strip()]
    return items or list(default or [])


ENVIRONMENT = os.environ.get('ENVIRONMENT') or os.environ.get('NODE_ENV') or 'development'
IS_PRODUCTION = ENVIRONMENT == 'production'

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-dev-only-change-me')
DEBUG = env_flag('DJANGO_DEBUG', not IS_PRODUCTION)
ALLOWED_HOSTS = env_list('ALLOWED_HOSTS', ['localhost', '127.0.0.1', 'testserver'])

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'corsheaders',
    'rest_framework',
    'accounts',
    'profiles',
    'tailoring',
    'billing',
]

MIDDLEWARE = [
    'tailoredresume.middleware.SecurityHeadersMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'tailoredresume.middleware.RequestLoggingMiddleware',
    'tailoredresume.middleware.UnhandledExceptionMiddleware',
]

ROOT_URLCONF = 'tailoredresume.urls'

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

WSGI_APPLICATION = 'tailoredresume.wsgi.application'

# Database
DATABASE_ENGINE = os.environ.get('DATABASE_ENGINE', 'sqlite3')
if DATABASE_ENGINE == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('DATABASE_NAME', 'tailoredresume'),
            'USER': os.environ.get('DATABASE_USER', ''),
            'PASSWORD': os.environ.get('DATABASE_PASSWORD', ''),
            'HOST': os.environ.get('DATABASE_HOST', 'localhost'),
            'PORT': os.environ.get('DATABASE_PORT', '5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.environ.get('DATABASE_NAME', str(BASE_DIR / 'db.sqlite3')),
        }
    }

AUTH_USER_MODEL = 'accounts.User'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Accept profile imports from PDFs
DATA_UPLOAD_MAX_MEMORY_SIZE = 5 * 1024 * 1024

APPEND_SLASH = False

# REST framework
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'accounts.authentication.JWTCookieAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'EXCEPTION_HANDLER': 'tailoredresume.exceptions.api_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

# Session token
JWT_SECRET = os.environ.get('JWT_SECRET', 'dev-secret')
JWT_ALGORITHM = 'HS256'
JWT_TTL = timedelta(days=int(os.environ.get('JWT_TTL_DAYS', '7')))
AUTH_COOKIE_NAME = 'auth_token'
AUTH_COOKIE_SECURE = IS_PRODUCTION
EMAIL_VERIFICATION_TTL = timedelta(hours=24)

FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:5173')
APP_NAME = 'TailoredAIResume'

# CORS
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_ALL_ORIGINS = not IS_PRODUCTION
CORS_ALLOWED_ORIGINS = env_list('CORS_ALLOWED_ORIGINS', [FRONTEND_URL, 'http://localhost:3000'])

# Bot protection
TURNSTILE_SECRET_KEY = os.environ.get('TURNSTILE_SECRET_KEY', '')
TURNSTILE_VERIFY_URL = 'https://challenges.cloudflare.com/turnstile/v0/siteverify'

# Transactional email
RESEND_API_KEY = os.environ.get('RESEND_API_KEY', '')
RESEND_API_URL = 'https://api.resend.com/emails'
EMAIL_FROM = os.environ.get('EMAIL_FROM', 'noreply@tailoredairesume.com')

# AI providers
AI_PROVIDER = os.environ.get('AI_PROVIDER', 'openai').strip().lower()
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o')
GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY', '')
GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-1.5-flash')

# LemonSqueezy
LEMONSQUEEZY_API_KEY = os.environ.get('LEMONSQUEEZY_API_KEY', '')
LEMONSQUEEZY_API_URL = 'https://api.lemonsqueezy.com/v1'
LEMONSQUEEZY_STORE_ID = os.environ.get('LEMONSQUEEZY_STORE_ID', '')
LEMONSQUEEZY_WEBHOOK_SECRET = os.environ.get('LEMONSQUEEZY_WEBHOOK_SECRET', '')
LEMON_VARIANT_IDS = {
    name: os.environ.get(name, '')
    for name in (
        'LEMON_STARTER_MONTHLY',
        'LEMON_STARTER_ANNUAL',
        'LEMON_PRO_MONTHLY',
        'LEMON_PRO_ANNUAL',
        'LEMON_UNLIMITED_MONTHLY',
        'LEMON_UNLIMITED_ANNUAL',
    )
}

# Stripe
STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY', '')
STRIPE_WEBHOOK_SECRET = os.environ.get('STRIPE_WEBHOOK_SECRET', '')
STRIPE_PRICE_TIERS = {
    price_id: tier
    for price_id, tier in (
        (os.environ.get('STRIPE_STARTER_PRICE_ID', ''), 'STARTER'),
        (os.environ.get('STRIPE_PRO_PRICE_ID', ''), 'PRO'),
        (os.environ.get('STRIPE_UNLIMITED_PRICE_ID', ''), 'UNLIMITED'),
    )
    if price_id
}

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        app: {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        }
        for app in ('accounts', 'profiles', 'tailoring', 'billing', 'tailoredresume')
    },
}

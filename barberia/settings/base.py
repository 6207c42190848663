"""
Base settings for the Cromados barbershop booking system.
"""
from pathlib import Path
from decouple import config, Csv
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = config('SECRET_KEY')

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS = [
    'axes',
]

LOCAL_APPS = [
    'apps.core',
    'apps.branches',
    'apps.barbers',
    'apps.services',
    'apps.bookings',
    'apps.payments',
    'apps.dashboard',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'axes.middleware.AxesMiddleware',
]

ROOT_URLCONF = 'barberia.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
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

WSGI_APPLICATION = 'barberia.wsgi.application'

DATABASES = {
    'default': dj_database_url.config(
        default=config('DATABASE_URL', default='postgres://postgres:@localhost:5432/barberia'),
        conn_max_age=600
    )
}

CSRF_TRUSTED_ORIGINS = config('CSRF_TRUSTED_ORIGINS', default='http://localhost:8000', cast=Csv())

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = config('LANGUAGE_CODE', default='es-ar')
TIME_ZONE = config('TIME_ZONE', default='America/Argentina/Buenos_Aires')
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ── Logging ────────────────────────────────────────────────────────────────────
LOG_LEVEL = config('LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'WARNING'},
        'apps': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}

# ── Razorpay ───────────────────────────────────────────────────────────────────
RAZORPAY_KEY_ID = config('RAZORPAY_KEY_ID', default='')
RAZORPAY_KEY_SECRET = config('RAZORPAY_KEY_SECRET', default='')
RAZORPAY_WEBHOOK_SECRET = config('RAZORPAY_WEBHOOK_SECRET', default='')
PAYMENT_CURRENCY = config('PAYMENT_CURRENCY', default='ARS')

# Where the payment gateway sends the customer back after paying
FRONTEND_URL = config('FRONTEND_URL', default='http://localhost:8000')

# ── Booking Engine ─────────────────────────────────────────────────────────────
SLOT_MINUTES = 30                   # Spacing between bookable start times
BOOKING_HOLD_MINUTES = config('BOOKING_HOLD_MINUTES', default=15, cast=int)
DEPOSIT_RATE = config('DEPOSIT_RATE', default='0.5')
MIN_CUSTOMER_AGE = 3

# Calling code -> digit inserted between the code and the local number
MOBILE_PREFIX_RULES = {'+54': '9'}

# ── Availability ───────────────────────────────────────────────────────────────
AVAILABILITY_LOOKAHEAD_MONTHS = 12  # Auto-advance never looks further than this
AVAILABILITY_CONCURRENCY = config('AVAILABILITY_CONCURRENCY', default=8, cast=int)

# Empty → the wizard talks to this deployment in-process
BOOKING_API_URL = config('BOOKING_API_URL', default='')
BOOKING_API_TIMEOUT = config('BOOKING_API_TIMEOUT', default=10.0, cast=float)

# ── Barber payouts ─────────────────────────────────────────────────────────────
PAYOUT_COMMISSION_RATE = config('PAYOUT_COMMISSION_RATE', default='0.5')
PAYOUT_BONUS_EVERY = 10              # Appointments per day that earn one bonus
PAYOUT_BONUS_SERVICE = config('PAYOUT_BONUS_SERVICE', default='Corte')

# ── django-axes (brute-force protection) ───────────────────────────────────────
AXES_FAILURE_LIMIT = 5
AXES_COOLOFF_TIME = 1   # hours
AXES_LOCKOUT_CALLABLE = None
AUTHENTICATION_BACKENDS = [
    'axes.backends.AxesStandaloneBackend',
    'django.contrib.auth.backends.ModelBackend',
]

# ── Admin URL ──────────────────────────────────────────────────────────────────
ADMIN_URL = config('ADMIN_URL', default='secret-admin/')

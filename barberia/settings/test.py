import os

os.environ.setdefault('SECRET_KEY', 'test-secret-key')

from .base import *  # noqa: E402

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES['staticfiles'] = {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'}

AXES_ENABLED = False

RAZORPAY_KEY_ID = 'rzp_test_key'
RAZORPAY_KEY_SECRET = 'rzp_test_secret'
RAZORPAY_WEBHOOK_SECRET = 'whsec_test'

BOOKING_API_URL = ''

"""Test settings.

SQLite database, in-memory cache and mail outbox, and Celery tasks run
eagerly so after-commit handlers execute inside the test.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test_db.sqlite3',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'bookings-tests',
    }
}

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

SITE_URL = 'https://bookings.test'
PAYMENT_PROVIDER_API_URL = 'https://provider.test/v1'
PAYMENT_PROVIDER_API_KEY = ''
PAYMENT_WEBHOOK_SECRET = 'test-webhook-secret'
REFERRAL_DEFAULT_SERVICE_FEE_RATE = '20'
REFERRAL_DEFAULT_COMMISSION_RATE = '5'

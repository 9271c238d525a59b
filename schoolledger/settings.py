# schoolledger/settings.py

"""
Django settings for the school ledger and grading engine.
Values are read from the environment with development defaults.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-secret-key-change-me')
DEBUG = os.environ.get('DJANGO_DEBUG', 'false').lower() in ('1', 'true', 'yes', 'on')
ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'core',
    'fees',
    'academics',
]

# Records are supplied by the caller; the engine has no database of its own
DATABASES = {}

TIME_ZONE = os.environ.get('SCHOOL_TIME_ZONE', 'Africa/Nairobi')
USE_TZ = True
LANGUAGE_CODE = 'en-us'

SCHOOL_CURRENCY = os.environ.get('SCHOOL_CURRENCY', 'KES')

LOG_LEVEL = os.environ.get('DJANGO_LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {message}',
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
        'core': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'fees': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'academics': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}

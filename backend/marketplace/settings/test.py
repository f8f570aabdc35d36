import os

from .base import *

DEBUG = True
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
SECRET_KEY = os.environ.get("SECRET_KEY", "test-secret-key")

# SQLite for CI speed/simplicity if DATABASE_URL absent
if not os.environ.get("DATABASE_URL"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "test.db",
        }
    }

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}
FEATURE_FLAG_OVERRIDES = {}
PROXYPAY_API_KEY = "test-proxypay-key"
PROXYPAY_ENTITY_ID = "10111"
PROXYPAY_WEBHOOK_URL = "https://example.com/webhooks/proxypay"
STRIPE_ENABLED = False
STRIPE_SECRET_KEY = ""

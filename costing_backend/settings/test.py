"""
Test settings: SQLite, in-memory cache and channel layer, eager Celery.
"""
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key-not-for-production-use-0123456789"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}
CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_CLASSES": [],
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

STRIPE_SECRET_KEY = "sk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_test"
STRIPE_PRICE_IDS = {
    "professional_monthly": "price_pro_m",
    "professional_yearly": "price_pro_y",
    "enterprise_monthly": "price_ent_m",
    "enterprise_yearly": "price_ent_y",
}
STRIPE_PRODUCT_TO_PLAN = {"prod_pro": "professional", "prod_ent": "enterprise"}
FRONTEND_URL = "http://testserver-frontend"

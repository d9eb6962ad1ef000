from .base import *

DEBUG = False
ALLOWED_HOSTS = ["*"]

DATABASES["default"] = {
    "ENGINE": "django.db.backends.sqlite3",
    "NAME": ":memory:",
}

STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Run alert tasks inline; task failures must not reach the request path
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False

ANOMALY_ANALYZER_URL = "http://analyzer.invalid"
ANOMALY_ANALYZER_TIMEOUT = 0.5

# Let pytest's caplog see application records
LOGGING["loggers"]["qrgate"]["propagate"] = True

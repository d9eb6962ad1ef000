from .base import *

DEBUG = True
ALLOWED_HOSTS = ["*"]
LOGGING["loggers"]["qrgate"]["level"] = os.getenv("LOG_LEVEL", "DEBUG").upper()

# Local runs without Docker: SQLite unless USE_SQLITE=0
if os.getenv("USE_SQLITE", "1") == "1":
    DATABASES["default"] = {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }

# Without a Redis broker, run alert tasks in-process
if os.getenv("CELERY_EAGER", "0") == "1":
    CELERY_TASK_ALWAYS_EAGER = True
    CELERY_TASK_EAGER_PROPAGATES = False

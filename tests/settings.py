"""Django settings for bedbooking tests.

SQLite in memory by default. Set DATABASE_ENGINE=postgresql (plus the
POSTGRES_* variables) in the environment or a .env file to run the suite
against PostgreSQL, where select_for_update() takes real row locks.
"""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "test-secret-key-not-for-production")

if os.getenv("DATABASE_ENGINE", "sqlite") == "postgresql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("POSTGRES_DB", "bedbooking_test"),
            "USER": os.getenv("POSTGRES_USER", "postgres"),
            "PASSWORD": os.getenv("POSTGRES_PASSWORD", "postgres"),
            "HOST": os.getenv("POSTGRES_HOST", "localhost"),
            "PORT": os.getenv("POSTGRES_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "bedbooking.sequence",
    "bedbooking.memberships",
    "bedbooking.availability",
    "bedbooking.invoicing",
]

USE_TZ = True
TIME_ZONE = "UTC"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

BEDBOOKING_CLOCK = "bedbooking.clock.SystemClock"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "bedbooking": {
            "handlers": ["console"],
            "level": os.getenv("BEDBOOKING_LOG_LEVEL", "WARNING"),
            "propagate": True,
        },
    },
}

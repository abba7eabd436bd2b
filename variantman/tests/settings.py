"""Minimal Django settings for running the Variantman test suite."""

SECRET_KEY = "variantman-tests"

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "variantman",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

USE_TZ = True

VARIANTMAN = {}

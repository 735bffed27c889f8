from .base import *  # noqa

DEBUG = True

# Print outgoing mail instead of requiring an SMTP relay.
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

LOG_LEVEL = "DEBUG"
LOGGING["loggers"]["apps"]["level"] = LOG_LEVEL  # noqa: F405

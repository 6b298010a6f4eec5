"""
WSGI config for the shipbridge project.

It exposes the WSGI callable as a module-level variable named ``application``.
Run it behind gunicorn: ``gunicorn shipbridge.wsgi --bind 0.0.0.0:$PORT``.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "shipbridge.settings")

# DjangoInstrumentor patches MIDDLEWARE, so tracing must be set up before the handler loads it
from shipbridge.otel import setup_otel  # noqa: E402

setup_otel()

application = get_wsgi_application()

"""WSGI entry point.

When ``ORDERS_CONSUMER_AUTOSTART`` is enabled the order pipeline (cache
warm-up + consumer thread) is started in the serving process, so the HTTP
read path and the ingestion loop share one in-memory cache.  Run a single
worker process per consumer group member.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()

from django.conf import settings  # noqa: E402

if settings.ORDERS_CONSUMER_AUTOSTART:
    from modules.orders.runtime import start_pipeline  # noqa: E402

    start_pipeline()

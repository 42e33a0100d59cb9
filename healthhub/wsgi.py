"""
WSGI config for the Healthcare Hub project.

It exposes the WSGI callable as a module-level variable named
``application``. Use it for plain HTTP deployments (gunicorn, uWSGI);
the ASGI entrypoint in ``healthhub.asgi`` adds the notification sockets.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'healthhub.settings')

application = get_wsgi_application()

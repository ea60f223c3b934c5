"""
WSGI config for motiffBackend project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "motiffBackend.settings")

application = get_wsgi_application()

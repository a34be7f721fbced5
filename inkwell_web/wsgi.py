"""
WSGI config for Inkwell.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'inkwell_web.settings.production')

application = get_wsgi_application()

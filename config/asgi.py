# ASGI (Asynchronous Server Gateway Interface) configuration

# The CRM only serves plain HTTP, so the default Django ASGI handler is enough
# Serve it with any ASGI server pointed at config.asgi:application
# ==============================================================================

import os
from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_asgi_application()

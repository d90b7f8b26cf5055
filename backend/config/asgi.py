# config/asgi.py
import os
import django
from django.core.asgi import get_asgi_application

# Init Django first (required before importing channels routing)
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
django.setup()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402
from channels.auth import AuthMiddlewareStack  # noqa: E402
import apps.orders.routing  # noqa: E402

application = ProtocolTypeRouter({
    # HTTP requests -> Django
    "http": get_asgi_application(),

    # WebSocket requests -> Channels
    "websocket": AllowedHostsOriginValidator(
        AuthMiddlewareStack(
            URLRouter(
                apps.orders.routing.websocket_urlpatterns
            )
        )
    ),
})

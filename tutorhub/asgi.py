import os

from channels.auth import AuthMiddlewareStack
from channels.routing import ProtocolTypeRouter, URLRouter
from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "tutorhub.settings")

# Initialise Django before importing anything that touches models.
django_asgi_app = get_asgi_application()

import scheduling.routing  # noqa: E402

application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": AuthMiddlewareStack(
        URLRouter(scheduling.routing.websocket_urlpatterns)
    ),
})

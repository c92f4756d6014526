from django.urls import path

from scheduling.consumers import CalendarConsumer

websocket_urlpatterns = [
    path("ws/calendar/<uuid:tutor_id>/", CalendarConsumer.as_asgi()),
]

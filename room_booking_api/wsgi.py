import os

from django.core.wsgi import get_wsgi_application


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "room_booking_api.settings.local_base")

application = get_wsgi_application()

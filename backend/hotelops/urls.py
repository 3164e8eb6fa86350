from django.contrib import admin
from django.db import connection
from django.db.utils import OperationalError, ProgrammingError
from django.http import JsonResponse
from django.urls import include, path

from enquiries.views import send_reply
from hotelops.metrics import metrics_view


def home(request):
    return JsonResponse({"message": "HotelOps API. Voir /api/kitchen/ et /api/inventory/."})


def health(request):
    return JsonResponse({"status": "ok"})


def health_db(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return JsonResponse({"status": "ok", "db": "ok"})
    except (OperationalError, ProgrammingError):
        return JsonResponse({"status": "degraded", "db": "unavailable"}, status=503)


urlpatterns = [
    path("", home, name="home"),
    path("health/", health, name="health"),
    path("health/db/", health_db, name="health-db"),
    path("metrics/", metrics_view, name="metrics"),
    path("admin/", admin.site.urls),

    path("api/auth/", include("accounts.urls")),
    path("api/kitchen/", include("kitchen.urls")),
    path("api/inventory/", include("inventory.urls")),
    path("api/email/send-reply/", send_reply, name="email-send-reply"),
    path("api/enquiries/", include("enquiries.urls")),
]

from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include


def health_check(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz", health_check),
    path("api/access/", include("qrgate.apps.access.urls")),
    path("api/audit/", include("qrgate.apps.audit.urls")),
]

from django.urls import path
from .views import document_access_logs

urlpatterns = [
    path("documents/<uuid:document_id>/logs/", document_access_logs, name="document-access-logs"),
]

from django.urls import path
from .views import generate_otp_view, validate_access_view

urlpatterns = [
    path("validate/", validate_access_view, name="validate-access"),
    path("otp/", generate_otp_view, name="generate-otp"),
]

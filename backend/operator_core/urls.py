from django.urls import include, path

urlpatterns = [
    path("", include("operator_settings.urls")),
]

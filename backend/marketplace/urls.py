from django.conf import settings
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("api/users/", include("users.urls")),
    path("api/payments/", include("payments.urls")),
    path("api/escrow/", include("escrow.urls")),
    # Host and ENABLE_OPERATOR gating happens in OpsOnlyRouteGatingMiddleware.
    path("api/operator/", include("operator_core.urls")),
]

if settings.ENABLE_DJANGO_ADMIN:
    urlpatterns.insert(0, path("admin/", admin.site.urls))

from django.conf import settings
from django.http import HttpResponseNotFound

GATED_PREFIXES = ("/admin/", "/api/operator/")


class OpsOnlyRouteGatingMiddleware:
    """Hide Django admin and operator APIs unless enabled and requested on an ops host."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ""

        if path.startswith("/admin/") and not getattr(settings, "ENABLE_DJANGO_ADMIN", False):
            return HttpResponseNotFound()
        if path.startswith("/api/operator/") and not getattr(settings, "ENABLE_OPERATOR", False):
            return HttpResponseNotFound()
        if path.startswith(GATED_PREFIXES) and not self._is_ops_host(request):
            return HttpResponseNotFound()

        return self.get_response(request)

    def _is_ops_host(self, request):
        allowed = {host.lower() for host in getattr(settings, "OPS_ALLOWED_HOSTS", [])}
        host = request.get_host() or ""
        hostname = host.split(":", 1)[0].lower()
        return hostname in allowed

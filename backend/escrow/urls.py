from django.urls import path

from .api import refund_escrow_view, release_escrow_view

app_name = "escrow"

urlpatterns = [
    path("refund/", refund_escrow_view, name="refund"),
    path("release/", release_escrow_view, name="release"),
]

from django.urls import path

from .api import confirm_payment_view, create_payment_intent_view

app_name = "payments"

urlpatterns = [
    path("intents/", create_payment_intent_view, name="create_intent"),
    path("confirm/", confirm_payment_view, name="confirm"),
]

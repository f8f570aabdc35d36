from django.urls import path

from operator_settings.api import OperatorFeatureFlagsView

app_name = "operator_settings"

urlpatterns = [
    path("feature-flags/", OperatorFeatureFlagsView.as_view(), name="operator_feature_flags"),
]

from django.conf import settings
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

from apps.common.views import live_health, ready_health

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("apps.api.urls")),
    path("health/live", live_health, name="health-live"),
    path("health/ready", ready_health, name="health-ready"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
]

# Interactive docs are a development aid only.
if settings.DEBUG:
    urlpatterns += [
        path("docs/swagger/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
        path("docs/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    ]

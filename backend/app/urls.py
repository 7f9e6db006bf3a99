"""Root URL configuration for PingWatch."""

from modules.core.urls import admin_urlpatterns, health_urlpatterns, monitoring_urlpatterns

urlpatterns = [
    *health_urlpatterns(),
    *monitoring_urlpatterns(),
    *admin_urlpatterns(),
]

from django.contrib import admin

from .models import (
    Component,
    HealthCheck,
    Incident,
    IncidentUpdate,
    Monitor,
    NotificationChannel,
    NotificationLog,
    StatusPage,
    Subscriber,
)


class ComponentInline(admin.TabularInline):
    model = Component
    extra = 0
    fields = ("name", "position", "status")


@admin.register(StatusPage)
class StatusPageAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "owner", "created_at")
    search_fields = ("name", "slug", "owner__email")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [ComponentInline]


@admin.register(Monitor)
class MonitorAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "url",
        "owner",
        "component",
        "check_interval_seconds",
        "last_status",
        "last_check_at",
        "is_active",
        "is_paused",
    )
    list_filter = ("is_active", "is_paused", "last_status", "method")
    search_fields = ("name", "url", "owner__email")
    readonly_fields = ("last_check_at", "last_status", "last_response_time_ms", "created_at", "updated_at")


@admin.register(HealthCheck)
class HealthCheckAdmin(admin.ModelAdmin):
    list_display = ("monitor", "status", "response_time_ms", "http_status", "checked_at")
    list_filter = ("status",)
    search_fields = ("monitor__name", "monitor__url")
    date_hierarchy = "checked_at"

    def has_change_permission(self, request, obj=None):
        return False


class IncidentUpdateInline(admin.TabularInline):
    model = IncidentUpdate
    extra = 0
    readonly_fields = ("created_at",)


@admin.register(Incident)
class IncidentAdmin(admin.ModelAdmin):
    list_display = ("title", "status_page", "status", "severity", "created_by", "started_at", "resolved_at")
    list_filter = ("status", "severity", "created_by", "is_maintenance")
    search_fields = ("title", "message")
    filter_horizontal = ("affected_components",)
    inlines = [IncidentUpdateInline]


@admin.register(Subscriber)
class SubscriberAdmin(admin.ModelAdmin):
    list_display = ("email", "status_page", "is_verified", "subscribed_at", "unsubscribed_at")
    list_filter = ("is_verified",)
    search_fields = ("email",)


@admin.register(NotificationChannel)
class NotificationChannelAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "owner", "status_page", "is_active", "created_at")
    list_filter = ("type", "is_active")


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ("event_type", "channel_type", "status", "incident", "monitor", "sent_at")
    list_filter = ("status", "channel_type", "event_type")
    readonly_fields = ("payload", "error_message")

    def has_change_permission(self, request, obj=None):
        return False

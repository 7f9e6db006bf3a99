import os

from celery import Celery
from modules.core.settings import setup_settings_logging

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "app.settings")

setup_settings_logging(logger_name="app.settings_loader.celery")

celery_app = Celery("pingwatch")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# INSTALLED_APPS is resolved lazily so Django settings are loaded first.
celery_app.autodiscover_tasks(
    lambda: __import__("django.conf", fromlist=["settings"]).settings.INSTALLED_APPS
)

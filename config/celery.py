# config/celery.py
import os
from celery import Celery

os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "config.settings"),
)

app = Celery("nexus")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Managed Redis (rediss://) with self-signed certs
if str(app.conf.broker_url or "").startswith("rediss://"):
    app.conf.broker_transport_options = {"ssl": {"cert_reqs": "CERT_NONE"}}
if str(app.conf.result_backend or "").startswith("rediss://"):
    app.conf.redis_backend_use_ssl = {"cert_reqs": "CERT_NONE"}

"""Monitoring package.

Submodules: ``prober`` (single HTTP check), ``scheduler`` (the health-check
cycle), ``incidents`` (open/resolve engine), ``notifications`` and
``channels`` (fan-out), ``retention`` (sweep), ``uptime`` (statistics),
``policy`` (plan limits) and ``tasks`` (Celery entry points). Import
concretely from those modules; nothing is re-exported here.
"""

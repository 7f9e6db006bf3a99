"""HTTP prober: one monitor, bounded retries, tri-state classification."""

from __future__ import annotations

import logging
import time

import requests

from .constants import (
    DEFAULT_TIMEOUT_MS,
    DEGRADED_THRESHOLD_MS,
    RETRY_COUNT,
    RETRY_DELAY_SECONDS,
    USER_AGENT,
    HealthStatus,
)
from .dto import MonitorCheckConfig, ProbeResult

logger = logging.getLogger("monitors.prober")


def check_monitor(
    config: MonitorCheckConfig,
    *,
    retry_count: int = RETRY_COUNT,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> ProbeResult:
    """Probe ``config.url`` up to ``retry_count + 1`` times.

    The first attempt whose status code equals ``expected_status`` wins and is
    classified by latency (degraded at or above the threshold, otherwise
    healthy). Any other status code, a transport error or a timeout counts as a
    failed attempt. When every attempt fails the result is ``down`` with the
    last error message. Nothing is written to the database here.
    """

    timeout_ms = config.timeout_ms or DEFAULT_TIMEOUT_MS
    method = (config.method or "GET").upper()
    last_error: str | None = None

    for attempt in range(retry_count + 1):
        if attempt > 0:
            time.sleep(retry_delay)

        started = time.monotonic()
        try:
            response = requests.request(
                method,
                config.url,
                timeout=timeout_ms / 1000,
                headers={"User-Agent": USER_AGENT},
                allow_redirects=True,
            )
        except requests.Timeout:
            last_error = f"Timeout after {timeout_ms}ms"
        except requests.RequestException as exc:
            last_error = str(exc) or type(exc).__name__
        except Exception as exc:  # noqa: BLE001
            # urllib3 parse errors (e.g. an over-long host label) bypass RequestException.
            last_error = str(exc) or type(exc).__name__
        else:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            if response.status_code == config.expected_status:
                status = (
                    HealthStatus.DEGRADED
                    if elapsed_ms >= DEGRADED_THRESHOLD_MS
                    else HealthStatus.HEALTHY
                )
                return ProbeResult(
                    status=status,
                    response_time_ms=elapsed_ms,
                    http_status=response.status_code,
                    error_message=None,
                )
            last_error = (
                f"Expected status {config.expected_status}, got {response.status_code}"
            )

        logger.warning(
            "Probe attempt failed",
            extra={
                "url": config.url,
                "method": method,
                "attempt": attempt + 1,
                "max_attempts": retry_count + 1,
                "error": last_error,
            },
        )

    return ProbeResult(
        status=HealthStatus.DOWN,
        response_time_ms=0,
        http_status=None,
        error_message=last_error,
    )


__all__ = ["check_monitor"]

"""Service configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"

DEFAULT_COLLECTOR_ENDPOINT = "otel-collector.otel.svc.cluster.local:55680"
EXPORTERS = ("otlp", "console", "memory", "none")


def _env(prefix: str, name: str, default: str | None = None) -> str | None:
    """Read PREFIX_NAME, falling back to NAME, then to the default."""
    value = os.getenv(f"{prefix}{name}")
    if value is None or value == "":
        value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _env_bool(prefix: str, name: str, default: bool) -> bool:
    value = _env(prefix, name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(prefix: str, name: str, default: float) -> float:
    value = _env(prefix, name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ValueError(f"{prefix}{name} must be a number, got {value!r}") from None
    if parsed <= 0:
        raise ValueError(f"{prefix}{name} must be positive, got {value!r}")
    return parsed


def _env_int(prefix: str, name: str, default: int) -> int:
    value = _env(prefix, name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{prefix}{name} must be an integer, got {value!r}") from None
    if parsed <= 0:
        raise ValueError(f"{prefix}{name} must be positive, got {value!r}")
    return parsed


@dataclass
class ServiceConfig:
    """Startup configuration of one service process."""

    service_name: str
    app_label: str
    listen_host: str = "0.0.0.0"
    listen_port: int = 8080
    exporter: str = "otlp"  # one of EXPORTERS
    collector_endpoint: str = DEFAULT_COLLECTOR_ENDPOINT
    collector_insecure: bool = True
    downstream_url: str | None = None
    tick_interval: float = 1.0
    request_timeout: float | None = None  # defaults to tick_interval
    max_body_bytes: int = 64 * 1024
    shutdown_timeout: float = 5.0
    response_body: str = "pog"
    debug_endpoints: bool = True
    log_level: str = "INFO"
    log_format: str = "json"  # or "text" on the console
    log_file: str | None = None

    @property
    def effective_request_timeout(self) -> float:
        """Outbound call timeout; the tick interval unless set explicitly."""
        if self.request_timeout is None:
            return self.tick_interval
        return self.request_timeout

    @property
    def resource_attributes(self) -> dict[str, str]:
        """Static attributes identifying this process in trace backends."""
        return {"service.name": self.service_name, "app": self.app_label}

    @property
    def effective_log_file(self) -> str:
        if self.log_file:
            return self.log_file
        return str(LOGS_DIR / f"{self.app_label}.log")

    @classmethod
    def from_env(
        cls,
        prefix: str,
        service_name: str,
        app_label: str,
        downstream_url: str | None = None,
    ) -> "ServiceConfig":
        """
        Build configuration from environment variables.

        Args:
            prefix: Variable prefix such as "SVCA_". Unprefixed names are used
                    as a fallback so both services can share one .env file.
            service_name: Default service.name resource attribute.
            app_label: Default "app" resource attribute.
            downstream_url: Default URL polled by the caller loop, if any.
        """
        request_timeout = _env(prefix, "REQUEST_TIMEOUT")
        return cls(
            service_name=_env(prefix, "SERVICE_NAME", service_name),
            app_label=_env(prefix, "APP_LABEL", app_label),
            listen_host=_env(prefix, "LISTEN_HOST", "0.0.0.0"),
            listen_port=_env_int(prefix, "LISTEN_PORT", 8080),
            exporter=_env(prefix, "EXPORTER", "otlp").lower(),
            collector_endpoint=_env(
                prefix, "COLLECTOR_ENDPOINT", DEFAULT_COLLECTOR_ENDPOINT
            ),
            collector_insecure=_env_bool(prefix, "COLLECTOR_INSECURE", True),
            downstream_url=_env(prefix, "DOWNSTREAM_URL", downstream_url),
            tick_interval=_env_float(prefix, "TICK_INTERVAL", 1.0),
            request_timeout=(
                None
                if request_timeout is None
                else _env_float(prefix, "REQUEST_TIMEOUT", 1.0)
            ),
            max_body_bytes=_env_int(prefix, "MAX_BODY_BYTES", 64 * 1024),
            shutdown_timeout=_env_float(prefix, "SHUTDOWN_TIMEOUT", 5.0),
            response_body=_env(prefix, "RESPONSE_BODY", "pog"),
            debug_endpoints=_env_bool(prefix, "DEBUG_ENDPOINTS", True),
            log_level=_env(prefix, "LOG_LEVEL", "INFO"),
            log_format=_env(prefix, "LOG_FORMAT", "json").lower(),
            log_file=_env(prefix, "LOG_FILE"),
        )

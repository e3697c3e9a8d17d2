"""Application configuration (YAML file + a few env overrides).

Server and Kubernetes settings have defaults. The restart threshold and every scoring
weight are mandatory: deployments have disagreed on their values, so nothing is guessed.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from podmon.core.errors import ConfigurationInvalid
from podmon.core.models import ScoringWeights

CONFIG_PATH_ENV = "POD_ERROR_MONITOR_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

_WEIGHT_KEYS = ("crash_loop", "image_pull", "high_restarts", "other_errors", "restart_multiplier")


@dataclass(frozen=True)
class CorsConfig:
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    allowed_methods: List[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    cors: CorsConfig = field(default_factory=CorsConfig)


@dataclass(frozen=True)
class KubernetesConfig:
    use_in_cluster: bool = False
    kubeconfig_path: str = "~/.kube/config"
    default_context: Optional[str] = None
    # Seconds between poll cycles.
    refresh_interval: float = 5.0


@dataclass(frozen=True)
class MonitoringConfig:
    high_restart_threshold: int
    weights: ScoringWeights
    # Seconds; bounds each pod list call and each kubeconfig write.
    request_timeout: Optional[float] = 10.0


@dataclass(frozen=True)
class Settings:
    monitoring: MonitoringConfig
    server: ServerConfig = field(default_factory=ServerConfig)
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)


def get_config_path() -> str:
    return (os.getenv(CONFIG_PATH_ENV) or "").strip() or DEFAULT_CONFIG_PATH


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    v = raw.get(key)
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ConfigurationInvalid(f"`{key}` must be a mapping")
    return v


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationInvalid(f"{what} must be a number, got {value!r}")
    f = float(value)
    if not math.isfinite(f) or f <= 0:
        raise ConfigurationInvalid(f"{what} must be finite and positive, got {value!r}")
    return f


def _str_list(value: Any, default: List[str], what: str) -> List[str]:
    if value is None or value == []:
        return list(default)
    if not isinstance(value, list):
        raise ConfigurationInvalid(f"{what} must be a list")
    return [str(x) for x in value]


def parse_monitoring(raw: Dict[str, Any]) -> MonitoringConfig:
    if "high_restart_threshold" not in raw:
        raise ConfigurationInvalid("monitoring.high_restart_threshold is required")
    threshold = raw["high_restart_threshold"]
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
        raise ConfigurationInvalid(f"monitoring.high_restart_threshold must be a non-negative integer, got {threshold!r}")

    w = raw.get("error_weights")
    if not isinstance(w, dict):
        raise ConfigurationInvalid("monitoring.error_weights is required")
    missing = [k for k in _WEIGHT_KEYS if k not in w]
    if missing:
        raise ConfigurationInvalid(f"monitoring.error_weights missing: {', '.join(missing)}")
    weights = ScoringWeights(**{k: _number(w[k], f"monitoring.error_weights.{k}") for k in _WEIGHT_KEYS})

    timeout_raw = raw.get("request_timeout", 10.0)
    timeout = None if timeout_raw is None else _number(timeout_raw, "monitoring.request_timeout")
    return MonitoringConfig(high_restart_threshold=threshold, weights=weights, request_timeout=timeout)


def parse_settings(raw: Dict[str, Any]) -> Settings:
    if not isinstance(raw, dict):
        raise ConfigurationInvalid("configuration root must be a mapping")

    server_raw = _section(raw, "server")
    cors_raw = _section(server_raw, "cors")
    defaults = CorsConfig()
    port = server_raw.get("port") or 8080
    if isinstance(port, bool) or not isinstance(port, int) or not (0 < port < 65536):
        raise ConfigurationInvalid(f"server.port must be a valid port, got {port!r}")
    server = ServerConfig(
        host=str(server_raw.get("host") or "0.0.0.0"),
        port=port,
        cors=CorsConfig(
            allowed_origins=_str_list(cors_raw.get("allowed_origins"), defaults.allowed_origins, "server.cors.allowed_origins"),
            allowed_methods=_str_list(cors_raw.get("allowed_methods"), defaults.allowed_methods, "server.cors.allowed_methods"),
        ),
    )

    k8s_raw = _section(raw, "kubernetes")
    kubeconfig_path = (
        str(k8s_raw.get("kubeconfig_path") or "").strip()
        or (os.getenv("KUBECONFIG") or "").split(os.pathsep)[0].strip()
        or "~/.kube/config"
    )
    refresh = k8s_raw.get("refresh_interval") or 5
    kubernetes = KubernetesConfig(
        use_in_cluster=bool(k8s_raw.get("use_in_cluster", False)),
        kubeconfig_path=os.path.expanduser(kubeconfig_path),
        default_context=(str(k8s_raw.get("default_context") or "").strip() or None),
        refresh_interval=_number(refresh, "kubernetes.refresh_interval"),
    )

    return Settings(monitoring=parse_monitoring(_section(raw, "monitoring")), server=server, kubernetes=kubernetes)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load and validate settings; any problem raises `ConfigurationInvalid`."""
    config_path = path or get_config_path()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationInvalid(f"error reading config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationInvalid(f"error parsing config file {config_path}: {e}") from e
    return parse_settings(raw)

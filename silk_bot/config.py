"""
Configuration for the SILK loan assistant.
Plain class-based config read from the environment.
"""
from __future__ import annotations

import logging
import os

_TRUTHY = {"1", "true", "yes", "on"}


class BaseConfig:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    JSON_SORT_KEYS: bool = False

    # Redis (conversation store + token sessions)
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB: int = int(os.getenv("REDIS_DB", 0))
    REDIS_DECODE_RESPONSES: bool = True
    REDIS_TTL_SECONDS: int = int(os.getenv("REDIS_TTL_SECONDS", 86400))

    # AI gateway - key MUST be set via environment variable.
    # LOVABLE_API_KEY is still honoured for older deployments.
    AI_GATEWAY_API_KEY: str = os.getenv("AI_GATEWAY_API_KEY") or os.getenv("LOVABLE_API_KEY", "")
    AI_GATEWAY_URL: str = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
    AI_MODEL: str = os.getenv("AI_MODEL", "google/gemini-2.5-flash")

    # Bounding timeouts for the whole exchange (requests-style (connect, read))
    UPSTREAM_CONNECT_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_CONNECT_TIMEOUT_SECONDS", "10"))
    UPSTREAM_READ_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_READ_TIMEOUT_SECONDS", "120"))
    STREAM_CHUNK_SIZE: int = int(os.getenv("STREAM_CHUNK_SIZE", "1024"))

    # Client side (chat_cli / ChatSession)
    MASTER_AGENT_URL: str = os.getenv("MASTER_AGENT_URL", "http://127.0.0.1:8080/functions/v1/master-agent")

    CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "").strip()

    @property
    def upstream_timeout(self) -> tuple[float, float]:
        return (self.UPSTREAM_CONNECT_TIMEOUT_SECONDS, self.UPSTREAM_READ_TIMEOUT_SECONDS)

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ALLOW_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True


class ProductionConfig(BaseConfig):
    DEBUG: bool = False


class LambdaConfig(ProductionConfig):
    # Lambda responses are buffered by serverless-wsgi; keep reads short.
    UPSTREAM_READ_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_READ_TIMEOUT_SECONDS", "25"))


class TestingConfig(BaseConfig):
    TESTING: bool = True
    REDIS_DB: int = 15


def get_config(name: str | None = None) -> BaseConfig:
    """Get configuration instance directly - no complex manager."""
    env = (name or os.getenv("APP_ENV", os.getenv("FLASK_ENV", "development"))).lower()
    mapping = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "lambda": LambdaConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = mapping.get(env, DevelopmentConfig)
    cfg = config_class()

    log = logging.getLogger(__name__)
    if not hasattr(get_config, "_logged_startup"):
        log.info(f"CONFIG_STARTUP | env={env} | config_class={config_class.__name__}")
        log.info(
            f"AI_GATEWAY_CONFIG | url={cfg.AI_GATEWAY_URL} | model={cfg.AI_MODEL} "
            f"| key_configured={bool(cfg.AI_GATEWAY_API_KEY)} | timeout={cfg.upstream_timeout}"
        )
        log.info(f"REDIS_CONFIG | host={cfg.REDIS_HOST} | port={cfg.REDIS_PORT} | db={cfg.REDIS_DB} | ttl={cfg.REDIS_TTL_SECONDS}s")
        get_config._logged_startup = True

    return cfg


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in _TRUTHY

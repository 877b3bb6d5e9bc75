"""Runtime configuration.

Settings are read once from the environment by ``Settings.from_env()`` and
handed to ``init_domain()``, which also makes them the active settings that
command handlers read through ``get_settings()`` (blend pricing, order id
prefix). ``TEASHOP_ENV`` selects the environment overlay:

    development → SQLite file, schema created on startup, DEBUG logging
    test        → same as development, WARNING logging
    staging     → schema managed by ``manage.py``, JSON logs
    production  → schema managed by ``manage.py``, JSON logs
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

ENVIRONMENTS = ("development", "test", "staging", "production")


@dataclass(frozen=True)
class BlendPricing:
    """Price components for materialized custom blends."""

    base_price: Decimal = Decimal("12.99")
    add_in_base_price: Decimal = Decimal("1.00")
    increment_price: Decimal = Decimal("0.25")
    # Custom blends are made to order; this is the stock they are created with.
    stock: int = 999


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    database_url: str = "sqlite:///teashop.db"
    create_schema: bool = True
    order_id_prefix: str = "ALC"
    blend_pricing: BlendPricing = field(default_factory=BlendPricing)
    auth_dev_tokens: dict[str, str] = field(default_factory=dict)
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env_vars = os.environ if environ is None else environ

        env = env_vars.get("TEASHOP_ENV", "development").strip().lower()
        if env not in ENVIRONMENTS:
            raise ValueError(f"TEASHOP_ENV must be one of {', '.join(ENVIRONMENTS)}, got '{env}'")

        defaults = BlendPricing()
        pricing = BlendPricing(
            base_price=Decimal(env_vars.get("BLEND_BASE_PRICE", str(defaults.base_price))),
            add_in_base_price=Decimal(env_vars.get("BLEND_ADDIN_BASE_PRICE", str(defaults.add_in_base_price))),
            increment_price=Decimal(env_vars.get("BLEND_INCREMENT_PRICE", str(defaults.increment_price))),
            stock=int(env_vars.get("BLEND_STOCK", defaults.stock)),
        )

        return cls(
            env=env,
            database_url=env_vars.get("DATABASE_URL", cls.database_url),
            create_schema=_flag(env_vars.get("CREATE_SCHEMA"), default=env in ("development", "test")),
            order_id_prefix=env_vars.get("ORDER_ID_PREFIX", cls.order_id_prefix),
            blend_pricing=pricing,
            auth_dev_tokens=_pairs(env_vars.get("AUTH_DEV_TOKENS", "")),
            cors_origins=tuple(o.strip() for o in env_vars.get("CORS_ORIGINS", "*").split(",") if o.strip()),
        )


def _flag(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _pairs(value: str) -> dict[str, str]:
    """Parse ``token:user,token:user`` into a dict."""
    pairs = {}
    for chunk in value.split(","):
        if ":" not in chunk:
            continue
        token, user_id = chunk.split(":", 1)
        if token.strip() and user_id.strip():
            pairs[token.strip()] = user_id.strip()
    return pairs


_active: Settings | None = None


def use_settings(settings: Settings) -> None:
    """Make ``settings`` the ones command handlers read."""
    global _active
    _active = settings


def get_settings() -> Settings:
    global _active
    if _active is None:
        _active = Settings.from_env()
    return _active

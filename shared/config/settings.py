import os
from dotenv import load_dotenv
from pydantic import BaseModel

from services.payment_service.exceptions import ConfigurationError
from services.payment_service.models import PaymentMethod
from services.payment_service.repository import ConflictPolicy

DEFAULT_ACK_MESSAGE = "✅ Screenshot received. Our staff will verify your payment shortly."

# Env var holding the payment destination for each method
DESTINATION_ENV = {
    PaymentMethod.PAYPAL: "PAYPAL_RECEIVER",    # email or paypal.me username
    PaymentMethod.REVOLUT: "REVOLUT_HANDLE",
    PaymentMethod.LINK: "PAYMENT_LINK_URL",
}


class Settings(BaseModel):
    staff_channel_id: int
    ack_message: str = DEFAULT_ACK_MESSAGE
    methods: list[PaymentMethod] = [PaymentMethod.PAYPAL]
    destinations: dict[PaymentMethod, str] = {}
    conflict_policy: ConflictPolicy = ConflictPolicy.REPLACE
    order_ttl_seconds: float | None = None
    sweep_interval_seconds: float = 300.0
    discord_token: str | None = None
    guild_id: int | None = None
    port: int = 3000


def _parse_methods(raw: str) -> list[PaymentMethod]:
    methods = []
    for name in raw.split(","):
        name = name.strip().lower()
        if not name:
            continue
        try:
            method = PaymentMethod(name)
        except ValueError:
            raise ConfigurationError(f"Unknown payment method '{name}' in PAYMENT_METHODS")
        if method not in methods:
            methods.append(method)
    if not methods:
        raise ConfigurationError("PAYMENT_METHODS must enable at least one method")
    return methods


def _parse_int(name: str, raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")


def load_settings(env: dict | None = None) -> Settings:
    """
    Reads configuration from the environment (and .env when present).
    Raises ConfigurationError when STAFF_CHANNEL_ID is missing so the process
    fails before connecting to the gateway. Missing payment destinations are
    NOT checked here; they surface when a user submits a form for that method.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    staff_channel_id = _parse_int("STAFF_CHANNEL_ID", env.get("STAFF_CHANNEL_ID"))
    if staff_channel_id is None:
        raise ConfigurationError("STAFF_CHANNEL_ID missing in env")

    policy_raw = env.get("ORDER_CONFLICT_POLICY", ConflictPolicy.REPLACE.value).strip().lower()
    try:
        policy = ConflictPolicy(policy_raw)
    except ValueError:
        raise ConfigurationError(f"ORDER_CONFLICT_POLICY must be 'replace' or 'reject', got '{policy_raw}'")

    destinations = {
        method: env[var].strip()
        for method, var in DESTINATION_ENV.items()
        if env.get(var, "").strip()
    }

    ttl = _parse_int("ORDER_TTL_SECONDS", env.get("ORDER_TTL_SECONDS"))

    return Settings(
        staff_channel_id=staff_channel_id,
        ack_message=env.get("ACK_MESSAGE") or DEFAULT_ACK_MESSAGE,
        methods=_parse_methods(env.get("PAYMENT_METHODS", PaymentMethod.PAYPAL.value)),
        destinations=destinations,
        conflict_policy=policy,
        order_ttl_seconds=ttl,
        sweep_interval_seconds=_parse_int("SWEEP_INTERVAL_SECONDS", env.get("SWEEP_INTERVAL_SECONDS")) or 300,
        discord_token=env.get("DISCORD_TOKEN") or None,
        guild_id=_parse_int("GUILD_ID", env.get("GUILD_ID")),
        port=_parse_int("PORT", env.get("PORT")) or 3000,
    )

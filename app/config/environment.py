import os
from dataclasses import dataclass
from datetime import tzinfo

import pytz

ALLOWED_ENVS = {"dev", "staging", "prod"}
ALLOWED_LEVEL_POLICIES = {"standard", "compact"}


@dataclass(frozen=True)
class EnvironmentRequirements:
    required_vars: tuple[str, ...]


_SUPABASE_VARS = (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
)

ENV_REQUIREMENTS: dict[str, EnvironmentRequirements] = {
    "dev": EnvironmentRequirements(required_vars=_SUPABASE_VARS),
    "staging": EnvironmentRequirements(required_vars=_SUPABASE_VARS + ("CORS_ORIGINS",)),
    "prod": EnvironmentRequirements(required_vars=_SUPABASE_VARS + ("CORS_ORIGINS",)),
}


def resolve_environment() -> str:
    env = (os.getenv("ENV") or "dev").strip().lower()
    if env not in ALLOWED_ENVS:
        allowed_values = ", ".join(sorted(ALLOWED_ENVS))
        raise RuntimeError(
            f"❌ Invalid ENV '{env}'. Expected one of: {allowed_values}."
        )
    return env


def validate_environment() -> str:
    env = resolve_environment()
    required = ENV_REQUIREMENTS[env].required_vars
    missing = [name for name in required if not (os.getenv(name) or "").strip()]
    if missing:
        missing_list = ", ".join(missing)
        raise RuntimeError(
            f"❌ Missing required environment variables for ENV='{env}': {missing_list}"
        )
    resolve_stats_timezone()
    resolve_level_policy()
    return env


def resolve_stats_timezone() -> tzinfo:
    name = (os.getenv("STATS_TIMEZONE") or "UTC").strip()
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise RuntimeError(f"❌ Unknown STATS_TIMEZONE '{name}'.") from exc


def resolve_level_policy() -> str:
    policy = (os.getenv("ACTIVITY_LEVEL_POLICY") or "standard").strip().lower()
    if policy not in ALLOWED_LEVEL_POLICIES:
        allowed_values = ", ".join(sorted(ALLOWED_LEVEL_POLICIES))
        raise RuntimeError(
            f"❌ Invalid ACTIVITY_LEVEL_POLICY '{policy}'. Expected one of: {allowed_values}."
        )
    return policy

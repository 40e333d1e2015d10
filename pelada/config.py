"""
================================================================================
CONFIGURATION
================================================================================

Purpose: Central place for every tunable value of the app (Supabase
credentials, OpenAI key, timezone, roster sizes, fees). Values are read from
Streamlit secrets first, then from environment variables (a local ``.env`` is
loaded with python-dotenv), then fall back to defaults.

Expected `.streamlit/secrets.toml` layout:

    [connections.supabase]
    url = "https://xyz.supabase.co"
    key = "..."

    [openai]
    api_key = "..."
    model = "gpt-4o-mini"

    [pelada]
    timezone = "America/Sao_Paulo"
    admin_nicknames = ["tonoli"]
================================================================================
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, time
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Monday in the Sunday=0 convention used for every weekday setting
MONDAY = 1


@dataclass(frozen=True)
class Settings:
    supabase_url: str = ""
    supabase_key: str = ""
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"
    timezone: str = "America/Sao_Paulo"
    session_id: int = 1
    finances_id: int = 1
    starters_count: int = 15
    team_count: int = 3
    min_players_for_draw: int = 9
    voting_opens_hour: int = 21
    kickoff: time = time(20, 15)
    dues_weekday: int = MONDAY
    monthly_fee: float = 25.0
    barbecue_fee: float = 15.0
    admin_nicknames: tuple = ("tonoli",)
    hidden_nicknames: tuple = ("AdminVantablack",)
    founder_nicknames: tuple = ("tonoli",)
    log_level: str = "INFO"
    login_secret: str = ""

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def remember_secret(self) -> str:
        """Key that signs the remembered login; falls back to the Supabase key."""
        return self.login_secret or self.supabase_key


def _read_streamlit_secrets():
    """Return the secrets mapping, or an empty dict outside a Streamlit run."""
    try:
        import streamlit as st
        return st.secrets.to_dict()
    except Exception:
        # No secrets.toml (tests, scripts): environment only
        return {}


def _as_tuple(value):
    if value is None:
        return None
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    return tuple(value)


def _parse_time(value):
    if isinstance(value, time):
        return value
    hours, minutes = str(value).split(":")
    return time(int(hours), int(minutes))


def load_settings(secrets=None, environ=None) -> Settings:
    """Build the app settings.

    Args:
        secrets (dict, optional): Secrets mapping. Defaults to ``st.secrets``.
        environ (Mapping, optional): Environment. Defaults to ``os.environ``
            after loading ``.env``.

    Returns:
        Settings: Frozen settings object.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ
    if secrets is None:
        secrets = _read_streamlit_secrets()

    supabase = secrets.get("connections", {}).get("supabase", {})
    openai = secrets.get("openai", {})
    pelada = secrets.get("pelada", {})
    defaults = Settings()

    def pick(section, key, env_key, default):
        value = section.get(key)
        if value is None:
            value = environ.get(env_key)
        return default if value is None else value

    return Settings(
        supabase_url=pick(supabase, "url", "SUPABASE_URL", ""),
        supabase_key=pick(supabase, "key", "SUPABASE_KEY", ""),
        openai_api_key=pick(openai, "api_key", "OPENAI_API_KEY", ""),
        openai_model=pick(openai, "model", "OPENAI_MODEL", defaults.openai_model),
        openai_base_url=pick(openai, "base_url", "OPENAI_BASE_URL", defaults.openai_base_url),
        timezone=pick(pelada, "timezone", "PELADA_TIMEZONE", defaults.timezone),
        session_id=int(pick(pelada, "session_id", "PELADA_SESSION_ID", defaults.session_id)),
        finances_id=int(pick(pelada, "finances_id", "PELADA_FINANCES_ID", defaults.finances_id)),
        starters_count=int(pick(pelada, "starters_count", "PELADA_STARTERS_COUNT", defaults.starters_count)),
        team_count=int(pick(pelada, "team_count", "PELADA_TEAM_COUNT", defaults.team_count)),
        min_players_for_draw=int(pick(pelada, "min_players_for_draw", "PELADA_MIN_PLAYERS", defaults.min_players_for_draw)),
        voting_opens_hour=int(pick(pelada, "voting_opens_hour", "PELADA_VOTING_OPENS_HOUR", defaults.voting_opens_hour)),
        kickoff=_parse_time(pick(pelada, "kickoff", "PELADA_KICKOFF", defaults.kickoff)),
        dues_weekday=int(pick(pelada, "dues_weekday", "PELADA_DUES_WEEKDAY", defaults.dues_weekday)),
        monthly_fee=float(pick(pelada, "monthly_fee", "PELADA_MONTHLY_FEE", defaults.monthly_fee)),
        barbecue_fee=float(pick(pelada, "barbecue_fee", "PELADA_BARBECUE_FEE", defaults.barbecue_fee)),
        admin_nicknames=_as_tuple(pick(pelada, "admin_nicknames", "PELADA_ADMIN_NICKNAMES", defaults.admin_nicknames)),
        hidden_nicknames=_as_tuple(pick(pelada, "hidden_nicknames", "PELADA_HIDDEN_NICKNAMES", defaults.hidden_nicknames)),
        founder_nicknames=_as_tuple(pick(pelada, "founder_nicknames", "PELADA_FOUNDER_NICKNAMES", defaults.founder_nicknames)),
        log_level=pick(pelada, "log_level", "PELADA_LOG_LEVEL", defaults.log_level),
        login_secret=pick(pelada, "login_secret", "PELADA_LOGIN_SECRET", ""),
    )


def configure_logging(settings: Settings):
    """Configure root logging once for the Streamlit process."""
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def now_local(settings: Settings) -> datetime:
    """Current wall-clock time in the configured zone.

    Decision functions never call this themselves; they receive ``now``.
    """
    return datetime.now(settings.tz)

# Supabase access for the Streamlit app
# This module owns the connection and the cached reads used by the UI
# Architecture: Streamlit UI → pelada.db (cache) → pelada.* repositories → Supabase REST API
# UI modules should call the load_* helpers here instead of querying Supabase directly

import logging
from functools import partial

import streamlit as st
from st_supabase_connection import SupabaseConnection

from pelada.commentary import Commentator
from pelada.config import configure_logging, load_settings
from pelada.feed import CONFIRMED, PENDING, fetch_feats, fetch_messages
from pelada.finances import fetch_finances
from pelada.players import fetch_players
from pelada.realtime import ChangeFeed
from pelada.session import fetch_session
from pelada.voting import fetch_votes, has_voted

logger = logging.getLogger(__name__)

# CONNECTION

# Settings and the connection are process-wide singletons
@st.cache_resource
def get_settings():
    settings = load_settings()
    configure_logging(settings)
    return settings


@st.cache_resource
def supaconn():
    settings = get_settings()
    if settings.supabase_url and settings.supabase_key:
        return st.connection("supabase", type=SupabaseConnection,
                             url=settings.supabase_url, key=settings.supabase_key)
    return st.connection("supabase", type=SupabaseConnection)


@st.cache_resource
def get_commentator():
    return Commentator.from_settings(get_settings())


# CACHED READS
# Short TTLs as a safety net; realtime notifications clear them on every change

@st.cache_data(ttl=60, show_spinner=False)
def load_players():
    settings = get_settings()
    return fetch_players(supaconn(), settings.hidden_nicknames, settings.admin_nicknames)


@st.cache_data(ttl=15, show_spinner=False)
def load_session():
    return fetch_session(supaconn(), get_settings().session_id)


@st.cache_data(ttl=60, show_spinner=False)
def load_finances():
    return fetch_finances(supaconn(), get_settings().finances_id)


@st.cache_data(ttl=60, show_spinner=False)
def load_votes():
    return fetch_votes(supaconn())


@st.cache_data(ttl=30, show_spinner=False)
def load_has_voted(voter_id, match_id):
    return has_voted(supaconn(), voter_id, match_id)


@st.cache_data(ttl=30, show_spinner=False)
def load_messages():
    return fetch_messages(supaconn())


@st.cache_data(ttl=60, show_spinner=False)
def load_confirmed_feats():
    return fetch_feats(supaconn(), CONFIRMED)


@st.cache_data(ttl=60, show_spinner=False)
def load_pending_feats():
    return fetch_feats(supaconn(), PENDING)


# Cosmetic text is cached per prompt arguments for an hour
@st.cache_data(ttl=3600, show_spinner=False)
def cached_dossier(name, stats, moral_score, events):
    return get_commentator().player_dossier(name, stats, moral_score, events)


TABLE_LOADERS = {
    "players": (load_players,),
    "sessions": (load_session,),
    "finances": (load_finances,),
    "votes": (load_votes, load_has_voted),
    "resenha_messages": (load_messages,),
    "humiliations": (load_confirmed_feats, load_pending_feats),
}


def invalidate(*tables):
    """Drop cached reads for ``tables`` (all tables when none given)."""
    for table in tables or TABLE_LOADERS:
        for loader in TABLE_LOADERS.get(table, ()):
            loader.clear()


def _on_change(table, payload):
    logger.debug(f"Change on {table}, invalidating cache")
    invalidate(table)


# REALTIME

@st.cache_resource
def start_change_feed():
    """Subscribe once per process to every table the UI caches."""
    settings = get_settings()
    feed = ChangeFeed()
    for table in TABLE_LOADERS:
        feed.register(table, partial(_on_change, table))
    feed.start(settings.supabase_url, settings.supabase_key)
    return feed

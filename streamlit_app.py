"""
================================================================================
FDP PERNAS DE PAU STREAMLIT APPLICATION
================================================================================

Purpose: Main entry point for the weekly pelada app.
Architecture: Browser → Streamlit → pelada.ui → pelada.db (cache) → Supabase

Main Features:
- Ranking: Leaderboards, moral chart and player profiles
- Pelada: Attendance list, waiting list and team draw
- Votação: Post-match best/worst vote with a live window countdown
- Feitos: Group chat, confirmed feats and the monthly barbecue call
- Caixa: Fund balance, goals and defaulters
- Admin: Session lifecycle, voting override and moderation

How it works:
1. The change feed is started once per process; every table change clears
   the matching cached reads
2. Players and the match session are loaded on every run (cached, short TTL)
3. The active section lives in the URL (?tab=...), so a reload lands on
   the same section; the logged-in player is restored from a signed id
   in the URL the same way
4. Error Handling: if the session cannot be loaded the app shows a retry
   button instead of guessing a status
================================================================================
"""

# =============================================================================
# PART 1: IMPORTS & CONFIGURATION
# =============================================================================

import streamlit as st

from pelada.db import get_settings, invalidate, load_players, load_session, start_change_feed
from pelada.errors import StoreUnavailable
from pelada.state import TABS, get_active_tab, get_current_user, refresh_current_user, set_active_tab
from pelada.ui.admin import render_admin_tab
from pelada.ui.feed import render_feed_tab
from pelada.ui.finances import render_finances_tab
from pelada.ui.match import render_match_tab
from pelada.ui.ranking import render_ranking_tab
from pelada.ui.sidebar import render_sidebar_user
from pelada.ui.voting import render_voting_tab

# IMPORTANT: This MUST be the first Streamlit command in the script
st.set_page_config(
    page_title="FDP Pernas de Pau",
    page_icon="⚽",
    layout="wide",
    initial_sidebar_state="expanded",
)

TAB_LABELS = {
    "ranking": "🏆 Ranking",
    "pelada": "⚽ Pelada",
    "votacao": "🗳️ Votação",
    "feitos": "📢 Feitos",
    "caixa": "💰 Caixa",
    "admin": "🔧 Admin",
}

start_change_feed()

# =============================================================================
# PART 2: DATA LOADING
# =============================================================================
# The session status is never guessed: without it no section is rendered

try:
    players = load_players()
    session = load_session()
except StoreUnavailable as e:
    st.error(f"Não foi possível carregar a pelada ({e.what}).")
    if st.button("Tentar novamente", type="primary"):
        invalidate()
        st.rerun()
    st.stop()

refresh_current_user(players, get_settings().remember_secret)

# =============================================================================
# PART 3: SIDEBAR & NAVIGATION
# =============================================================================
# st.tabs cannot be selected programmatically, so navigation is a radio
# bound to the URL query parameter

render_sidebar_user()
user = get_current_user()

visible_tabs = [t for t in TABS if t != "admin" or (user is not None and user.is_admin)]
active = get_active_tab()
if active not in visible_tabs:
    active = visible_tabs[0]

selected = st.radio(
    "Seção",
    visible_tabs,
    index=visible_tabs.index(active),
    format_func=TAB_LABELS.get,
    horizontal=True,
    label_visibility="collapsed",
)
if get_active_tab() != selected:
    set_active_tab(selected)

# =============================================================================
# PART 4: SECTIONS
# =============================================================================

if selected == "ranking":
    render_ranking_tab(players, user)
elif selected == "pelada":
    render_match_tab(session, players, user)
elif selected == "votacao":
    render_voting_tab(players, user)
elif selected == "feitos":
    render_feed_tab(players, user)
elif selected == "caixa":
    render_finances_tab(players, user)
elif selected == "admin":
    render_admin_tab(session, players, user)

from datetime import datetime, timedelta, timezone

import jwt
import streamlit as st
from typing import Any, Dict, List, Optional

# Client-side UI state only. The match session, roster and votes are always
# re-read from Supabase; nothing here is a source of truth for them.

TABS = ("ranking", "pelada", "votacao", "feitos", "caixa", "admin")
DEFAULT_TAB = "ranking"
LOGIN_PARAM = "player"
LOGIN_ALGORITHM = "HS256"
LOGIN_DAYS = 30


# === Navigation State Management ===

def get_active_tab() -> str:
    """Gets the last active tab, restored from the URL on reload."""
    tab = st.query_params.get("tab", DEFAULT_TAB)
    return tab if tab in TABS else DEFAULT_TAB


def set_active_tab(tab: str):
    """Stores the active tab in the URL so a reload lands on the same tab."""
    if tab in TABS:
        st.query_params["tab"] = tab


# === Remembered Login ===
# The URL carries a signed token with the player id so a reload restores the
# UI. The player row itself is always taken from the fresh players list.

def login_token(player_id: str, secret: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=LOGIN_DAYS)
    return jwt.encode({"sub": str(player_id), "exp": expire}, secret, algorithm=LOGIN_ALGORITHM)


def player_id_from_token(token: Optional[str], secret: str) -> Optional[str]:
    """Player id carried by ``token``, or None if it is missing, expired or tampered."""
    if not token or not secret:
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=[LOGIN_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    return payload.get("sub")


# === User State Management ===

def get_current_user():
    """Gets the logged-in player from state."""
    return st.session_state.get("state_current_user")


def set_current_user(player, secret: str = ""):
    """Sets the logged-in player in state and remembers it in the URL."""
    st.session_state["state_current_user"] = player
    if secret:
        st.query_params[LOGIN_PARAM] = login_token(player.id, secret)


def clear_current_user():
    """Clears the logged-in player and everything derived from them."""
    for key in ("state_current_user", "state_teams", "state_team_comment",
                "state_vote_receipt", "state_feed_reply", "state_notices"):
        if key in st.session_state:
            del st.session_state[key]
    if LOGIN_PARAM in st.query_params:
        del st.query_params[LOGIN_PARAM]


def refresh_current_user(players, secret: str = ""):
    """Replace the cached user with the fresh row from ``players``.

    After a reload the session state is empty; the user is then restored
    from the signed id in the URL, if it still matches a player.
    """
    user = get_current_user()
    if user is None:
        player_id = player_id_from_token(st.query_params.get(LOGIN_PARAM), secret)
        if player_id is None:
            return
    else:
        player_id = user.id
    for player in players:
        if player.id == player_id:
            st.session_state["state_current_user"] = player
            return


# === Match Screen State ===

def get_teams() -> Optional[Dict[str, Any]]:
    """Gets the last team draw from state."""
    return st.session_state.get("state_teams")


def set_teams(teams: Dict[str, Any], comment: str):
    """Sets the team draw and its narration in state."""
    st.session_state["state_teams"] = teams
    st.session_state["state_team_comment"] = comment


def get_team_comment() -> str:
    return st.session_state.get("state_team_comment", "")


def clear_teams():
    for key in ("state_teams", "state_team_comment"):
        if key in st.session_state:
            del st.session_state[key]


# === Voting Screen State ===

def set_vote_receipt(match_id: str, message: str, comment: str):
    """Keeps the confirmation of the last vote so it survives reruns."""
    st.session_state["state_vote_receipt"] = {"match_id": match_id, "message": message, "comment": comment}


def get_vote_receipt(match_id: str) -> Optional[Dict[str, str]]:
    receipt = st.session_state.get("state_vote_receipt")
    if receipt and receipt["match_id"] == match_id:
        return receipt
    return None


# === Feed Screen State ===

def set_feed_reply(text: str):
    st.session_state["state_feed_reply"] = text


def get_feed_reply() -> str:
    return st.session_state.get("state_feed_reply", "")


# === One-shot notices ===
# Shown once on the next run, after an action that reruns the page

def push_notice(text: str):
    st.session_state.setdefault("state_notices", []).append(text)


def pop_notices() -> List[str]:
    return st.session_state.pop("state_notices", [])

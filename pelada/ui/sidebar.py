"""
Sidebar components for the pelada app
- Login / registration forms
- Logged-in player card with notifications and logout
"""
import streamlit as st

from pelada.db import get_settings, invalidate, supaconn
from pelada.errors import StoreUnavailable
from pelada.feed import fetch_notifications, mark_notifications_read, unread_count
from pelada.players import Position, authenticate, register_player
from pelada.state import clear_current_user, get_current_user, set_current_user


def _render_login_form():
    settings = get_settings()
    with st.form("login_form"):
        nickname = st.text_input("Vulgo")
        password = st.text_input("Senha", type="password")
        submitted = st.form_submit_button("Entrar", use_container_width=True, type="primary")
    if not submitted:
        return
    if not nickname.strip() or not password.strip():
        st.error("Preenche o vulgo e a senha, bagre.")
        return
    try:
        player = authenticate(supaconn(), nickname, password, settings.admin_nicknames)
    except StoreUnavailable:
        st.error("Erro ao consultar o banco. Tenta de novo.")
        return
    if player is None:
        st.error("Vulgo ou senha errados.")
        return
    set_current_user(player, settings.remember_secret)
    st.rerun()


def _render_register_form():
    settings = get_settings()
    with st.form("register_form"):
        nickname = st.text_input("Vulgo", key="reg_nickname")
        name = st.text_input("Nome")
        password = st.text_input("Senha", type="password", key="reg_password")
        invited_by = st.text_input("Padrinho (vulgo de quem te chamou)")
        position = st.selectbox("Posição", [p.value for p in Position])
        submitted = st.form_submit_button("Criar ficha", use_container_width=True)
    if not submitted:
        return
    try:
        player = register_player(
            supaconn(),
            nickname=nickname,
            name=name,
            password=password,
            position=position,
            invited_by=invited_by,
            reserved_nicknames=settings.hidden_nicknames,
            founder_nicknames=settings.founder_nicknames,
            admin_nicknames=settings.admin_nicknames,
        )
    except ValueError as e:
        st.error(str(e))
        return
    except StoreUnavailable:
        st.error("Erro ao criar ficha. Tenta de novo.")
        return
    invalidate("players")
    set_current_user(player, settings.remember_secret)
    st.rerun()


def _render_notifications(player):
    notifications = fetch_notifications(supaconn(), player.id)
    unread = unread_count(notifications)
    label = f"🔔 Notificações ({unread})" if unread else "🔔 Notificações"
    with st.expander(label, expanded=False):
        if not notifications:
            st.caption("Nada por aqui.")
        for n in notifications:
            message = n.get("message", "")
            st.markdown(message if n.get("is_read") else f"**{message}**")
        if unread and st.button("Marcar como lidas", key="mark_read"):
            mark_notifications_read(supaconn(), player.id)
            st.rerun()


def render_sidebar_user():
    """Render login/registration or the logged-in player card."""
    with st.sidebar:
        st.markdown("### ⚽ FDP Pernas de Pau")
        player = get_current_user()
        if player is None:
            login_tab, register_tab = st.tabs(["Entrar", "Novo Atleta"])
            with login_tab:
                _render_login_form()
            with register_tab:
                _render_register_form()
            return

        col_pic, col_info = st.columns([1, 2])
        with col_pic:
            st.image(player.photo, width=64)
        with col_info:
            st.markdown(f"**{player.nickname}**")
            st.caption(f"Moral {player.moral_score} • {player.status}")
        _render_notifications(player)
        if st.button("🚪 Fugir (Sair)", key="sidebar_logout", use_container_width=True):
            clear_current_user()
            st.rerun()
        st.markdown("---")

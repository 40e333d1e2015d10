"""Pelada tab: attendance list, waiting list and team draw."""

import streamlit as st

from pelada.clock import format_countdown, next_kickoff
from pelada.config import now_local
from pelada.db import get_commentator, get_settings, invalidate, supaconn
from pelada.errors import NotEnoughPlayers, StoreUnavailable
from pelada.players import players_by_id
from pelada.session import SessionStatus, is_list_closed, split_roster, toggle_attendance
from pelada.state import clear_teams, get_team_comment, get_teams, set_teams
from pelada.teams import draw_teams

STATUS_LABELS = {
    SessionStatus.IDLE: "😴 Sem pelada marcada",
    SessionStatus.OPEN_CALL: "📣 Lista aberta",
    SessionStatus.IN_PROGRESS: "⚽ Bola rolando",
    SessionStatus.VOTING_OPEN: "🗳️ Votação aberta",
    SessionStatus.FINALIZED: "🏁 Pelada encerrada",
}


def _render_roster(title, ids, lookup, offset=0):
    st.markdown(f"**{title}** ({len(ids)})")
    if not ids:
        st.caption("Ninguém.")
        return
    for number, player_id in enumerate(ids, start=offset + 1):
        player = lookup.get(player_id)
        st.markdown(f"{number}. {player.nickname if player else 'Desconhecido'}")


def _render_attendance_button(session, user):
    settings = get_settings()
    present = session.is_present(user.id)
    label = "❌ Tô fora" if present else "✅ Tô dentro"
    if st.button(label, key="toggle_attendance", use_container_width=True,
                 type="secondary" if present else "primary"):
        try:
            toggle_attendance(supaconn(), user, user.id, settings.session_id)
        except StoreUnavailable:
            st.error("Erro ao salvar presença. Nada mudou, tenta de novo.")
            return
        invalidate("sessions")
        st.rerun()


def _render_team_draw(starters, user):
    settings = get_settings()
    if user.is_admin and st.button("🎲 Sortear times", key="draw_teams", use_container_width=True):
        try:
            teams = draw_teams(starters, settings.team_count, settings.min_players_for_draw)
        except NotEnoughPlayers as e:
            st.warning(f"Precisa de pelo menos {e.required} confirmados para sortear ({e.available} agora).")
        else:
            with st.spinner("Chamando o narrador..."):
                comment = get_commentator().team_draw(teams)
            set_teams(teams, comment)

    teams = get_teams()
    if not teams:
        return
    columns = st.columns(len(teams))
    for column, (letter, names) in zip(columns, teams.items()):
        with column:
            st.markdown(f"### Time {letter}")
            for name in names:
                st.markdown(f"- {name}")
    comment = get_team_comment()
    if comment:
        st.info(comment)
    if user.is_admin and st.button("Limpar sorteio", key="clear_teams"):
        clear_teams()
        st.rerun()


def render_match_tab(session, players, user):
    settings = get_settings()
    st.header("Pelada da Semana")
    st.subheader(STATUS_LABELS.get(session.status, session.status.value))

    now = now_local(settings)
    kickoff = next_kickoff(now, session.match_weekday, settings.kickoff)
    st.caption(f"Próximo jogo: {kickoff:%d/%m %H:%M} (faltam {format_countdown(kickoff - now)})")

    lookup = players_by_id(players)
    starter_ids, waiting_ids = split_roster(session.players_present, settings.starters_count)

    if session.status is SessionStatus.OPEN_CALL and is_list_closed(session, settings.starters_count):
        st.caption("Lista de titulares fechada. Quem confirmar agora entra na espera.")
    if user is not None and session.status is SessionStatus.OPEN_CALL:
        _render_attendance_button(session, user)
    elif user is None:
        st.info("Entra na sua conta pra confirmar presença.")

    col_main, col_wait = st.columns(2)
    with col_main:
        _render_roster("Titulares", starter_ids, lookup)
    with col_wait:
        _render_roster("Espera", waiting_ids, lookup, offset=len(starter_ids))

    if user is not None:
        st.markdown("---")
        starters = [lookup[pid] for pid in starter_ids if pid in lookup]
        _render_team_draw(starters, user)

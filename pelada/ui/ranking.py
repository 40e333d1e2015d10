"""Ranking tab: leaderboards, moral chart and player profiles."""

import pandas as pd
import plotly.express as px
import streamlit as st

from pelada.badges import get_badge
from pelada.db import cached_dossier, invalidate, supaconn
from pelada.players import season_highlights, update_profile


def _leaderboard(players, attribute, label, limit=5):
    ranked = sorted(players, key=lambda p: getattr(p, attribute) or 0, reverse=True)[:limit]
    df = pd.DataFrame(
        [{"Vulgo": p.nickname, label: getattr(p, attribute) or 0} for p in ranked]
    )
    st.markdown(f"**{label}**")
    if df.empty:
        st.caption("Sem dados.")
    else:
        st.dataframe(df, hide_index=True, use_container_width=True)


def render_player_profile(player, user=None):
    col_pic, col_info = st.columns([1, 3])
    with col_pic:
        st.image(player.photo, use_container_width=True)
    with col_info:
        st.subheader(f"{player.nickname} ({player.name})")
        st.caption(f"{player.position} • {player.status}")
        cols = st.columns(4)
        cols[0].metric("Jogos", player.matches_played)
        cols[1].metric("Gols", player.goals)
        cols[2].metric("Assist.", player.assists)
        cols[3].metric("Moral", player.moral_score)
        if player.thought:
            st.markdown(f"> {player.thought}")
    badges = [get_badge(b) for b in player.badges]
    badges = [b for b in badges if b]
    if badges:
        st.markdown(" ".join(f"{b.icon} {b.name}" for b in badges))
    stats = f"{player.matches_played} jogos, {player.goals} gols, {player.assists} assistências"
    st.info(cached_dossier(player.nickname, stats, player.moral_score, None))

    if user is not None and user.id == player.id:
        with st.form("thought_form"):
            thought = st.text_input("Pensamento do dia", value=player.thought or "")
            if st.form_submit_button("Salvar"):
                if update_profile(supaconn(), player.id, thought=thought.strip()):
                    invalidate("players")
                    st.rerun()
                else:
                    st.error("Erro ao salvar.")


def render_ranking_tab(players, user=None):
    st.header("Mural do Orgulho")
    search = st.text_input("Procurar elemento", placeholder="Vulgo ou nome")
    if search:
        needle = search.lower()
        shown = [p for p in players if needle in p.nickname.lower() or needle in p.name.lower()]
    else:
        shown = players

    if not search and players:
        best, worst = season_highlights(players)
        col_best, col_worst = st.columns(2)
        if best:
            col_best.success(f"🏆 Bola de Ouro: **{best.nickname}** ({best.best_votes} votos)")
        if worst:
            col_worst.error(f"🐟 Bagre: **{worst.nickname}** ({worst.worst_votes} votos)")

    col1, col2, col3 = st.columns(3)
    with col1:
        _leaderboard(shown, "goals", "Gols")
    with col2:
        _leaderboard(shown, "assists", "Assistências")
    with col3:
        _leaderboard(shown, "worst_votes", "Votos de Bagre")

    if shown:
        df = pd.DataFrame([{"Vulgo": p.nickname, "Moral": p.moral_score} for p in shown])
        fig = px.bar(df.sort_values("Moral", ascending=False), x="Vulgo", y="Moral", range_y=[0, 100])
        fig.update_layout(height=320, margin=dict(l=10, r=10, t=30, b=10))
        st.plotly_chart(fig, use_container_width=True)

        selected = st.selectbox("Ver ficha", ["-"] + [p.nickname for p in shown])
        if selected != "-":
            render_player_profile(next(p for p in shown if p.nickname == selected), user)

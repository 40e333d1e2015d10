"""Votação tab: window countdown, ballot form and weekly results.

The countdown runs inside a fragment that re-renders every second, so the
form appears on its own when the window opens without the whole page
reloading. The window decision itself is always ``is_voting_open``.
"""

import streamlit as st

from pelada.clock import compute_match_id, format_countdown, voting_closes_at, voting_opens_at
from pelada.config import now_local
from pelada.db import get_commentator, get_settings, invalidate, load_has_voted, load_session, load_votes, supaconn
from pelada.errors import AlreadyVoted, StoreUnavailable
from pelada.players import players_by_id
from pelada.session import SessionStatus, VotingOverride, is_voting_open
from pelada.state import get_vote_receipt, set_vote_receipt
from pelada.voting import submit_vote, tally_latest_results


def _render_results(players):
    try:
        results = tally_latest_results(load_votes())
    except StoreUnavailable:
        st.warning("Não deu pra carregar o resultado agora.")
        return
    if results is None:
        st.caption("Nenhum voto registrado ainda.")
        return
    lookup = players_by_id(players)
    best = lookup.get(results.best_id)
    worst = lookup.get(results.worst_id)
    st.markdown(f"#### Resultado da pelada de {results.match_id} ({results.total_ballots} votos)")
    col_best, col_worst = st.columns(2)
    with col_best:
        if best:
            st.success(f"🏆 Menos pior: **{best.nickname}** ({results.best_votes} votos)")
    with col_worst:
        if worst:
            st.error(f"🐟 Bagre: **{worst.nickname}** ({results.worst_votes} votos)")


def _render_ballot(session, players, user):
    settings = get_settings()
    candidates = [p for p in players if p.id != user.id]
    if len(candidates) < 2:
        st.info("Precisa de pelo menos dois outros jogadores pra votar.")
        return
    names = {p.id: p.nickname for p in candidates}

    with st.form("vote_form"):
        best_id = st.selectbox("🏆 Menos pior da pelada", list(names), format_func=names.get, key="vote_best")
        worst_id = st.selectbox("🐟 Bagre da pelada", list(names), format_func=names.get, key="vote_worst")
        submitted = st.form_submit_button("Votar", type="primary", use_container_width=True)
    if not submitted:
        return
    if best_id == worst_id:
        st.error("Não dá pra votar no mesmo jogador nas duas categorias.")
        return
    # The window may have closed while the form was open
    if not is_voting_open(session, now_local(settings), settings.voting_opens_hour):
        st.warning("A votação fechou.")
        return

    try:
        receipt = submit_vote(supaconn(), user.id, best_id, worst_id, session, now_local(settings))
    except AlreadyVoted:
        st.info("Você já votou nessa pelada. Segue o resultado.")
        invalidate("votes")
        return
    except StoreUnavailable:
        st.error("Erro ao registrar o voto. Nada foi salvo, tenta de novo.")
        return

    invalidate("votes", "players")
    message = f"Voto registrado para a pelada de {receipt.match_id}!"
    if receipt.warnings:
        message += " A moral de algum jogador não foi atualizada."
    with st.spinner("Chamando o narrador..."):
        comment = get_commentator().best_player(names[best_id], "", "eleito pela galera")
    # The fragment reruns every second, so the receipt is rendered from state
    set_vote_receipt(receipt.match_id, message, comment)
    st.rerun()


@st.fragment(run_every=1)
def _render_window(players, user):
    settings = get_settings()
    try:
        session = load_session()
    except StoreUnavailable:
        st.error("Não foi possível carregar a pelada.")
        return
    now = now_local(settings)

    if is_voting_open(session, now, settings.voting_opens_hour):
        if session.manual_voting_override is VotingOverride.AUTO:
            closes = voting_closes_at(now, session.match_weekday)
            st.caption(f"Votação fecha em {format_countdown(closes - now)}")
        else:
            st.caption("Votação aberta pelo admin.")
        match_id = compute_match_id(now, session.match_weekday)
        try:
            voted = load_has_voted(user.id, match_id)
        except StoreUnavailable:
            st.error("Não foi possível conferir seu voto.")
            return
        if voted:
            receipt = get_vote_receipt(match_id)
            if receipt:
                st.success(receipt["message"])
                st.info(receipt["comment"])
            else:
                st.success("Você já votou nessa pelada. ✅")
        else:
            _render_ballot(session, players, user)
        return

    if session.manual_voting_override is VotingOverride.FORCE_CLOSED:
        st.info("🔒 Votação fechada pelo admin.")
    elif session.status in (SessionStatus.VOTING_OPEN, SessionStatus.FINALIZED):
        opens = voting_opens_at(now, session.match_weekday, settings.voting_opens_hour)
        if opens > now:
            st.info(f"⏳ Votação abre em {format_countdown(opens - now)}")
        else:
            st.info("🔒 Votação encerrada. Até a próxima pelada.")
    else:
        st.info("🔒 Votação fechada. Ela abre depois que a pelada termina.")


def render_voting_tab(players, user):
    st.header("Votação")
    if user is None:
        st.info("Entra na sua conta pra votar.")
    else:
        _render_window(players, user)
    st.markdown("---")
    _render_results(players)

"""Feitos tab: group chat, confirmed feats and the monthly barbecue call."""

import streamlit as st

from pelada.clock import is_monthly_recurring_due_today
from pelada.config import now_local
from pelada.db import get_commentator, get_settings, invalidate, load_confirmed_feats, load_messages, supaconn
from pelada.errors import StoreUnavailable
from pelada.feed import build_timeline, post_message, report_feat
from pelada.finances import confirm_barbecue, has_confirmed_barbecue, month_key
from pelada.players import players_by_id
from pelada.state import get_feed_reply, set_feed_reply

FEAT_TYPES = ["caneta", "chapeu", "drible", "gol_de_placa", "defesa"]


def _render_barbecue_call(user):
    settings = get_settings()
    now = now_local(settings)
    if not is_monthly_recurring_due_today(now, settings.dues_weekday):
        return
    month = month_key(now)
    if has_confirmed_barbecue(supaconn(), user.id, month):
        st.success("🍖 Churrasco do mês confirmado.")
        return
    st.warning(f"🍖 Hoje é dia de confirmar o churrasco do mês (R$ {settings.barbecue_fee:.2f}).")
    if st.button("Tô dentro do churrasco", key="confirm_barbecue", use_container_width=True):
        try:
            confirmed = confirm_barbecue(supaconn(), user, month, settings.barbecue_fee)
        except StoreUnavailable:
            st.error("Erro ao confirmar. Tenta de novo.")
            return
        if not confirmed:
            st.info("Você já tinha confirmado esse mês.")
        invalidate("players")
        st.rerun()


def _render_report_form(players, user):
    others = {p.id: p.nickname for p in players if p.id != user.id}
    if not others:
        return
    with st.expander("📢 Denunciar um feito"):
        with st.form("feat_form", clear_on_submit=True):
            victim_id = st.selectbox("Vítima", list(others), format_func=others.get)
            feat_type = st.selectbox("Tipo", FEAT_TYPES)
            description = st.text_input("O que rolou?")
            submitted = st.form_submit_button("Enviar pro admin")
        if submitted:
            if report_feat(supaconn(), user, victim_id, feat_type, description.strip()):
                st.success("Feito enviado. O admin vai julgar.")
            else:
                st.error("Não foi possível enviar o feito.")


def render_feed_tab(players, user):
    st.header("Resenha")
    if user is not None:
        _render_barbecue_call(user)
        _render_report_form(players, user)

    try:
        timeline = build_timeline(load_messages(), load_confirmed_feats())
    except StoreUnavailable:
        st.error("Não foi possível carregar a resenha.")
        if st.button("Tentar novamente", key="retry_feed"):
            invalidate("resenha_messages", "humiliations")
            st.rerun()
        return

    lookup = players_by_id(players)
    for item in timeline[-50:]:
        author = lookup.get(item.author_id)
        name = author.nickname if author else "Anônimo"
        with st.chat_message("user" if item.kind == "chat" else "assistant",
                             avatar=author.photo if author else None):
            if item.kind == "feat":
                target = lookup.get(item.target_id)
                st.markdown(f"**{name}** aprontou com **{target.nickname if target else '?'}**")
            else:
                st.markdown(f"**{name}**")
            st.markdown(item.text)

    reply = get_feed_reply() if user is not None else ""
    if reply:
        with st.chat_message("assistant", avatar="🎙️"):
            st.markdown("**Narrador**")
            st.markdown(reply)

    if user is not None:
        text = st.chat_input("Manda a resenha")
        if text:
            if post_message(supaconn(), user, text):
                invalidate("resenha_messages")
                with st.spinner("Chamando o narrador..."):
                    set_feed_reply(get_commentator().feed_reply(text, user.nickname))
                st.rerun()
            else:
                st.error("Mensagem não enviada.")

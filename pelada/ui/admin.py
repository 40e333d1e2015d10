"""
Admin tab
- Session lifecycle buttons and voting override
- Match weekday, fund balance and goals
- Feat review, special events and payment toggles
"""
import streamlit as st

from pelada.badges import get_badge
from pelada.config import now_local
from pelada.db import get_commentator, get_settings, invalidate, load_finances, load_pending_feats, supaconn
from pelada.errors import InvalidTransition, NotAuthorized, SessionWriteFailed, StoreUnavailable
from pelada.feed import SPECIAL_EVENT_DELTAS, record_special_event, review_feat
from pelada.finances import add_goal, toggle_paid, update_balance
from pelada.lifecycle import available_targets, set_match_weekday, set_voting_override, transition
from pelada.players import players_by_id
from pelada.session import SessionStatus, VotingOverride
from pelada.state import pop_notices, push_notice

WEEKDAY_LABELS = ["Domingo", "Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado"]

TARGET_LABELS = {
    SessionStatus.IDLE: "🔄 Resetar ciclo",
    SessionStatus.OPEN_CALL: "📣 Abrir lista",
    SessionStatus.IN_PROGRESS: "⚽ Começar pelada",
    SessionStatus.VOTING_OPEN: "🗳️ Abrir votação",
    SessionStatus.FINALIZED: "🏁 Encerrar",
}

OVERRIDE_LABELS = {
    VotingOverride.AUTO: "Automático",
    VotingOverride.FORCE_OPEN: "Forçar aberta",
    VotingOverride.FORCE_CLOSED: "Forçar fechada",
}


def _show_write_failure(e: SessionWriteFailed):
    st.error("Falha ao salvar. O status da pelada não mudou, tenta de novo.")
    if e.session is not None:
        st.caption(f"Status atual no banco: {e.session.status.value}")


def _narrate_unlocks(unlocked, players):
    lookup = players_by_id(players)
    commentator = get_commentator()
    for player_id, badge_ids in unlocked.items():
        player = lookup.get(player_id)
        for badge_id in badge_ids:
            badge = get_badge(badge_id)
            if player is None or badge is None:
                continue
            line = commentator.badge_unlock(player.nickname, badge.name)
            push_notice(f"{badge.icon} **{player.nickname}** desbloqueou {badge.name}. {line}")


# === Session ===

def _render_session_controls(session, players, user):
    settings = get_settings()
    st.subheader("Pelada")
    st.caption(f"Status: {session.status.value} • Votação: {session.manual_voting_override.value}")
    for notice in pop_notices():
        st.info(notice)

    targets = available_targets(session.status)
    columns = st.columns(len(targets)) if targets else []
    for column, target in zip(columns, targets):
        with column:
            if st.button(TARGET_LABELS[target], key=f"transition_{target.value}", use_container_width=True):
                try:
                    result = transition(supaconn(), user, target, settings.session_id)
                except SessionWriteFailed as e:
                    invalidate("sessions")
                    _show_write_failure(e)
                    return
                except (InvalidTransition, StoreUnavailable) as e:
                    invalidate("sessions")
                    st.error(str(e))
                    return
                invalidate("sessions", "players")
                if result.unlocked:
                    with st.spinner("Chamando o narrador..."):
                        _narrate_unlocks(result.unlocked, players)
                if result.warnings:
                    st.warning(f"{len(result.warnings)} jogador(es) sem contagem de jogo atualizada.")
                    return
                st.rerun()

    # Widget keys carry the stored value: when the session changes (a reset,
    # another admin) the widgets start over from the store instead of
    # keeping a stale selection.
    overrides = list(VotingOverride)
    choice = st.radio(
        "Controle da votação",
        overrides,
        index=overrides.index(session.manual_voting_override),
        format_func=OVERRIDE_LABELS.get,
        horizontal=True,
        key=f"voting_override_{session.manual_voting_override.value}",
    )
    if choice != session.manual_voting_override:
        try:
            set_voting_override(supaconn(), user, choice, settings.session_id)
        except SessionWriteFailed as e:
            invalidate("sessions")
            _show_write_failure(e)
            return
        invalidate("sessions")
        st.rerun()

    weekday = st.selectbox(
        "Dia da pelada",
        list(range(7)),
        index=session.match_weekday,
        format_func=lambda d: WEEKDAY_LABELS[d],
        key=f"match_weekday_{session.match_weekday}",
    )
    if weekday != session.match_weekday:
        try:
            set_match_weekday(supaconn(), user, weekday, settings.session_id)
        except SessionWriteFailed as e:
            invalidate("sessions")
            _show_write_failure(e)
            return
        invalidate("sessions")
        st.rerun()


# === Fund ===

def _render_fund_controls():
    st.subheader("Caixa")
    try:
        finances = load_finances()
    except StoreUnavailable:
        st.error("Não foi possível carregar o caixa.")
        return
    with st.form("balance_form"):
        balance = st.number_input("Saldo (R$)", value=float(finances.total_balance), step=10.0)
        if st.form_submit_button("Salvar saldo"):
            if update_balance(supaconn(), balance, finances.id):
                invalidate("finances")
                st.rerun()
            else:
                st.error("Erro ao salvar saldo.")
    with st.form("goal_form", clear_on_submit=True):
        title = st.text_input("Nova meta")
        target = st.number_input("Valor (R$)", min_value=0.0, step=50.0)
        if st.form_submit_button("Adicionar meta"):
            if add_goal(supaconn(), finances, title.strip(), target):
                invalidate("finances")
                st.rerun()
            else:
                st.error("Meta precisa de título e valor.")


def _render_payments(players):
    settings = get_settings()
    with st.expander("💸 Mensalidades"):
        for player in players:
            col_name, col_button = st.columns([3, 1])
            col_name.markdown(f"{player.nickname} • {'pago' if player.is_paid else f'deve R$ {player.debt:,.2f}'}")
            label = "Desmarcar" if player.is_paid else "Pagou"
            if col_button.button(label, key=f"paid_{player.id}", use_container_width=True):
                if toggle_paid(supaconn(), player, settings.monthly_fee):
                    invalidate("players")
                    st.rerun()
                else:
                    st.error("Erro ao atualizar pagamento.")


# === Feats and events ===

def _render_feat_review(players, user):
    st.subheader("Feitos pendentes")
    try:
        pending = load_pending_feats()
    except StoreUnavailable:
        st.error("Não foi possível carregar os feitos.")
        return
    if not pending:
        st.caption("Nada pra julgar.")
        return
    lookup = players_by_id(players)
    for feat in pending:
        performer = lookup.get(feat.get("performer_id"))
        victim = lookup.get(feat.get("victim_id"))
        st.markdown(
            f"**{performer.nickname if performer else '?'}** → **{victim.nickname if victim else '?'}**: "
            f"{feat.get('type', '')} • {feat.get('description', '')}"
        )
        col_ok, col_no = st.columns(2)
        decision = None
        if col_ok.button("✅ Confirmar", key=f"approve_{feat['id']}", use_container_width=True):
            decision = True
        if col_no.button("❌ Rejeitar", key=f"reject_{feat['id']}", use_container_width=True):
            decision = False
        if decision is None:
            continue
        try:
            warnings = review_feat(supaconn(), user, feat, decision)
        except StoreUnavailable:
            st.error("Erro ao salvar o julgamento.")
            return
        invalidate("humiliations", "players")
        if warnings:
            st.warning("Feito confirmado, mas a moral de algum jogador não foi atualizada.")
            return
        st.rerun()


def _render_special_events(players, user):
    settings = get_settings()
    with st.expander("⭐ Evento especial"):
        names = {p.id: p.nickname for p in players}
        with st.form("special_event_form", clear_on_submit=True):
            player_id = st.selectbox("Jogador", list(names), format_func=names.get)
            event_type = st.selectbox("Tipo", list(SPECIAL_EVENT_DELTAS))
            description = st.text_input("Descrição")
            submitted = st.form_submit_button("Registrar")
        if submitted and player_id:
            player = players_by_id(players)[player_id]
            if record_special_event(supaconn(), user, player, event_type, description, now_local(settings)):
                invalidate("players")
                st.success("Evento registrado.")
            else:
                st.error("Erro ao registrar evento.")


def render_admin_tab(session, players, user):
    if user is None or not user.is_admin:
        st.warning("Área restrita ao admin.")
        return
    st.header("Admin")
    try:
        _render_session_controls(session, players, user)
        st.markdown("---")
        _render_feat_review(players, user)
        _render_special_events(players, user)
        st.markdown("---")
        _render_fund_controls()
        _render_payments(players)
    except NotAuthorized:
        st.error("Você não tem permissão pra isso.")

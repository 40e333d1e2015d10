"""Caixa tab: group balance, goals and who still owes."""

import pandas as pd
import streamlit as st

from pelada.db import load_finances
from pelada.errors import StoreUnavailable
from pelada.finances import defaulters, pending_total


def render_finances_tab(players, user):
    st.header("Caixa")
    try:
        finances = load_finances()
    except StoreUnavailable:
        st.error("Não foi possível carregar o caixa.")
        return

    col_balance, col_pending = st.columns(2)
    col_balance.metric("Saldo", f"R$ {finances.total_balance:,.2f}")
    col_pending.metric("A receber", f"R$ {pending_total(players):,.2f}")

    if finances.goals:
        st.subheader("Metas")
        for goal in finances.goals:
            st.markdown(f"**{goal.title}**: R$ {goal.current:,.2f} de R$ {goal.target:,.2f}")
            st.progress(goal.progress)

    owing = defaulters(players)
    st.subheader("Caloteiros")
    if not owing:
        st.success("Ninguém devendo. Milagre.")
        return
    df = pd.DataFrame([{"Vulgo": p.nickname, "Dívida (R$)": p.debt} for p in owing])
    st.dataframe(df.sort_values("Dívida (R$)", ascending=False), hide_index=True, use_container_width=True)
    if user is not None and not user.is_paid and user.debt:
        st.warning(f"Você deve R$ {user.debt:,.2f}. Acerta com o tesoureiro.")

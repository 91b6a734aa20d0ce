import streamlit as st
import pandas as pd

from data_integrator import insert_order
from services.checkout_service import CheckoutSession
from utils.formatting import format_percent, format_soles


@st.dialog("Confirmar pedido")
def confirmation_dialog_order(session: CheckoutSession, state_name: str):
    pricing = session.price()
    destination = session.destination

    rows = [
        ("Cliente", session.client_name),
        ("Destino", destination.region.replace("_", " ").title()),
        ("Dirección", destination.address),
        ("Subtotal", format_soles(pricing.subtotal)),
    ]
    if pricing.discount_percent > 0:
        rows.append(
            (f"Descuento ({format_percent(pricing.discount_percent)}%)", f"-{format_soles(pricing.discount_amount)}")
        )
    if pricing.delivery_quote.paid_at_agency:
        rows.append(("Envío", f"Según agencia (S/ {pricing.delivery_quote.advisory_range})"))
    else:
        rows.append(("Envío", format_soles(pricing.delivery_fee)))
    rows.append(("Total", format_soles(pricing.total)))

    df = pd.DataFrame(rows, columns=["Campo", "Valor"])
    st.dataframe(df, hide_index=True)

    col_yes, col_no = st.columns(2)

    with col_yes:
        if st.button("Confirmar", type="primary", key="confirm_yes"):
            status, msg, order = session.submit(insert_order)
            st.session_state[state_name] = order if status else None

            if not status:
                st.error(msg)
            else:
                st.rerun()
    with col_no:
        if st.button("Cancelar"):
            st.rerun()

import streamlit as st
import pandas as pd

from config import load_app_config
from data_integrator import fetch_orders_by_email
from services.drive_service import DOCX_MIMETYPE
from services.invoice_service import invoice_docx_bytes, invoice_filename, invoice_totals
from services.order_service import order_from_row
from utils.formatting import format_percent, format_soles

st.set_page_config(page_title="Mis Pedidos", page_icon="📦")
st.sidebar.header("📦 Mis Pedidos")

app_config = load_app_config()
policy = app_config.rounding_policy

email = st.text_input("Correo con el que hiciste tus pedidos")
if not email:
    st.stop()

ok, msg, rows = fetch_orders_by_email(email.strip())
if not ok:
    st.error(msg)
    st.stop()
if not rows:
    st.info("No encontramos pedidos para este correo.")
    st.stop()

orders = [order_from_row(row) for row in rows]

df_orders = pd.DataFrame(
    [
        {
            "Pedido": o.order_id,
            "Fecha": (o.created_at or "")[:10],
            "Destino": o.location_to_send.replace("_", " ").title(),
            "Productos": o.total_products,
            "Total": format_soles(invoice_totals(o, policy).total),
            "Estado": o.status,
        }
        for o in orders
    ]
)
st.dataframe(df_orders, width="stretch", hide_index=True)

st.divider()

for o in orders:
    totals = invoice_totals(o, policy)
    with st.expander(f"Pedido #{o.order_id} - {format_soles(totals.total)}"):
        df_lines = pd.DataFrame(
            [
                {
                    "Producto": line.name,
                    "Talla": line.size_label or "-",
                    "Cant.": line.quantity,
                    "Precio": format_soles(line.unit_price),
                    "Total": format_soles(line.total_price),
                }
                for line in o.lines
            ]
        )
        st.dataframe(df_lines, width="stretch", hide_index=True)

        st.write(f"Subtotal: **{format_soles(totals.subtotal)}**")
        if totals.discount_percent > 0:
            st.write(
                f"Descuento ({format_percent(totals.discount_percent)}%): "
                f"**-{format_soles(totals.discount_amount)}**"
            )
        if totals.delivery > 0:
            st.write(f"Envío: **{format_soles(totals.delivery)}**")
        elif o.agency:
            st.write(f"Envío: pago en agencia ({o.agency})")
        st.write(f"Total: **{format_soles(totals.total)}**")

        st.download_button(
            "Descargar comprobante",
            data=invoice_docx_bytes(o, policy),
            file_name=invoice_filename(o),
            mime=DOCX_MIMETYPE,
            key=f"invoice_{o.order_id}",
        )

import logging

import pandas as pd
import streamlit as st

from config import load_app_config
from data_integrator import fetch_products, supabase_config_fetcher
from domain.models import Customer, GeoPoint, LimaDestination, ProvinciaDestination
from element_component import confirmation_dialog_order
from services.checkout_service import CheckoutSession
from services.config_service import ConfigCache, HttpConfigFetcher
from services.drive_service import DOCX_MIMETYPE
from services.invoice_publish_service import generate_invoice_documents
from utils.formatting import format_percent, format_soles, to_decimal
from utils.geo import origin_notice, resolve_origin

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app_config = load_app_config()

st.set_page_config(page_title="Tienda", page_icon="🛍️")
st.sidebar.header("🛍️ Tu pedido")


@st.cache_resource
def get_config_cache() -> ConfigCache:
    fetcher = HttpConfigFetcher(app_config.config_url) if app_config.config_url else supabase_config_fetcher
    return ConfigCache(fetcher, cache_path=app_config.config_cache_path)


@st.cache_data(ttl=300)
def load_catalog():
    return fetch_products()


config_cache = get_config_cache()
config_cache.get_or_refresh(background=True)
support_phone = config_cache.get_setting("telefono", app_config.support_phone)
if config_cache.last_error:
    st.sidebar.warning("No se pudo actualizar la configuración, usando la última disponible.")

if "checkout" not in st.session_state:
    st.session_state["checkout"] = CheckoutSession(
        customer=Customer(name="", email=""),
        registry=config_cache.registry(),
        fee_settings=config_cache.fee_settings(),
        policy=app_config.rounding_policy,
    )
if "submitted_order" not in st.session_state:
    st.session_state["submitted_order"] = None

session: CheckoutSession = st.session_state["checkout"]
session.update_config(config_cache.registry(), config_cache.fee_settings())

# -----------------------------------------------------------------------------
# Order placed on the previous run
# -----------------------------------------------------------------------------
order = st.session_state["submitted_order"]
if order is not None:
    st.success(f"Pedido #{order.order_id} registrado")
    try:
        docs = generate_invoice_documents(order, app_config)
        with open(docs["docx_path"], "rb") as f:
            st.download_button(
                "Descargar comprobante",
                data=f.read(),
                file_name=f"pedido-{order.order_id}.docx",
                mime=DOCX_MIMETYPE,
            )
    except Exception as e:
        logger.exception("Invoice generation failed for order %s", order.order_id)
        st.error(f"No se pudo generar el comprobante: {e}")
    session.reset()
    st.session_state["submitted_order"] = None

# -----------------------------------------------------------------------------
# 1) Customer
# -----------------------------------------------------------------------------
st.subheader("Tus datos")
col_name, col_email = st.columns(2)
with col_name:
    session.client_name = st.text_input("Nombre", value=session.client_name)
with col_email:
    session.customer.email = st.text_input("Correo", value=session.customer.email)
session.customer.name = session.client_name

st.divider()

# -----------------------------------------------------------------------------
# 2) Catalog -> cart
# -----------------------------------------------------------------------------
ok, msg, products = load_catalog()
if not ok:
    st.error(msg)
    st.stop()
if not products:
    st.warning("No hay productos disponibles.")
    st.stop()

products_by_name = {p["name"]: p for p in products}

st.subheader("Agregar productos")
col_prod, col_size, col_qty = st.columns([2, 1, 1])
with col_prod:
    product_name = st.selectbox("Producto", options=list(products_by_name.keys()))
product = products_by_name[product_name]

sizes = product.get("sizes") or []
with col_size:
    size = st.selectbox("Talla", options=sizes) if sizes else None
with col_qty:
    qty = st.number_input("Cantidad", min_value=1, step=1, value=1)

st.caption(f"Precio: **{format_soles(to_decimal(product['price']))}**")

if st.button("➕ Agregar al carrito"):
    try:
        session.cart.add(product["id"], product["name"], product["price"], int(qty), size)
    except ValueError as e:
        st.error(str(e))

summary = session.summary()
if summary.items:
    df_cart = pd.DataFrame(
        [
            {
                "#": item.index,
                "Producto": item.name,
                "Talla": item.size,
                "Cant.": item.quantity,
                "Precio": item.unit_price_display,
                "Total": item.line_total_display,
            }
            for item in summary.items
        ]
    )
    st.dataframe(df_cart, width="stretch", hide_index=True)

    lines = session.cart.lines
    to_remove = st.selectbox(
        "Quitar producto",
        options=range(len(lines)),
        format_func=lambda i: f"{lines[i].name} {lines[i].size_label or ''}".strip(),
    )
    if st.button("🗑️ Quitar"):
        line = lines[to_remove]
        session.cart.remove(line.product_id, line.size_label)
        st.rerun()
else:
    st.info("Tu carrito está vacío.")

st.divider()

# -----------------------------------------------------------------------------
# 3) Coupon
# -----------------------------------------------------------------------------
active = session.registry.active_coupon()
if active:
    st.caption(f"Cupón del momento: **{active.code}** ({format_percent(active.discount_percent)}% de descuento)")

coupon_code = st.text_input("Cupón", value=session.coupon_code)
if coupon_code != session.coupon_code:
    pct = session.apply_coupon(coupon_code)
    if coupon_code and pct == 0:
        st.warning("Cupón no válido")

st.divider()

# -----------------------------------------------------------------------------
# 4) Destination
# -----------------------------------------------------------------------------
st.subheader("Envío")
region = st.radio("Destino", options=["Lima Metropolitana", "Provincia"], horizontal=True)

if region == "Lima Metropolitana":
    address = st.text_input("Dirección")
    if "map_origin" not in st.session_state:
        # resolved once per session so the fallback is logged once
        st.session_state["map_origin"] = resolve_origin(None)
    origin = st.session_state["map_origin"]
    notice = origin_notice(origin)
    if notice:
        st.warning(notice)
    col_lat, col_lng = st.columns(2)
    with col_lat:
        lat = st.number_input("Latitud", value=origin.lat, format="%.6f")
    with col_lng:
        lng = st.number_input("Longitud", value=origin.lng, format="%.6f")
    pin_set = st.checkbox("Confirmo la ubicación en el mapa")
    location = GeoPoint(lat=lat, lng=lng) if pin_set else None
    session.set_destination(LimaDestination(address=address, location=location))
    if location is not None:
        st.map(pd.DataFrame([{"lat": lat, "lon": lng}]), zoom=14)
else:
    address = st.text_input("Departamento / Provincia")
    agency = st.text_input("Agencia")
    col_dni, col_phone = st.columns(2)
    with col_dni:
        dni = st.text_input("DNI")
    with col_phone:
        phone = st.text_input("Teléfono")
    try:
        session.set_destination(ProvinciaDestination(address=address, agency=agency, dni=dni, phone=phone))
    except ValueError as e:
        session.destination = None
        if agency or dni or phone:
            st.warning(str(e))

st.divider()

# -----------------------------------------------------------------------------
# 5) Summary + submit
# -----------------------------------------------------------------------------
pricing = session.price()
quote = pricing.delivery_quote

st.subheader("Resumen")
st.write(f"Subtotal: **{format_soles(pricing.subtotal)}**")
if pricing.discount_percent > 0:
    st.write(
        f"Descuento ({format_percent(pricing.discount_percent)}%): **-{format_soles(pricing.discount_amount)}**"
    )
if quote.paid_at_agency:
    st.write(f"Envío: recargo según agencia (S/ {quote.advisory_range})")
elif not quote.available:
    st.write("Envío: completa los datos de envío para calcularlo")
elif pricing.delivery_fee == 0:
    st.write("Envío: **gratis**")
else:
    st.write(f"Envío: **{format_soles(pricing.delivery_fee)}**")
st.metric("Total", format_soles(pricing.total))

valid, reason = session.validate()
if not valid:
    st.info(reason)

col_order, col_wa = st.columns(2)
with col_order:
    if st.button("Realizar pedido", type="primary", disabled=not valid):
        confirmation_dialog_order(session, "submitted_order")
with col_wa:
    if valid:
        st.link_button("Enviar por WhatsApp", session.whatsapp_link(support_phone))

if session.last_error:
    st.error(f"No se pudo registrar el pedido: {session.last_error}. Puedes intentarlo de nuevo.")

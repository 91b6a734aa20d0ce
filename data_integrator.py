import logging
from functools import lru_cache
from typing import Dict, List, Any, Tuple, Optional
from datetime import datetime, timezone

from supabase import create_client, Client

from config import load_app_config
from services.config_service import ConfigFetchError, ConfigSnapshot, FetchResult, NOT_MODIFIED

logger = logging.getLogger(__name__)

ORDER_COLUMNS = (
    "clientName",
    "email",
    "locationToSend",
    "address",
    "agencia",
    "dni",
    "clientPhone",
    "getlocation",
    "totalPrice",
    "totalProducts",
    "discount",
    "deliveryCost",
)


@lru_cache(maxsize=1)
def get_client() -> Client:
    cfg = load_app_config()
    if not cfg.supabase_url or not cfg.supabase_key:
        raise RuntimeError("SUPABASE_URL / SUPABASE_KEY are not set in the environment")
    return create_client(cfg.supabase_url, cfg.supabase_key)


def _table(name: str):
    return get_client().schema(load_app_config().schema).table(name)


def insert_order(payload: Dict[str, Any]) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    """
    Insert an order and its items.
    Returns (ok, message, order_row) where order_row carries "orderItems".

    payload is the dict built by order_service.build_order_payload.
    """
    try:
        order_row = {k: payload.get(k) for k in ORDER_COLUMNS}
        order_row["status"] = "pendiente"
        order_row["createdAt"] = datetime.now(timezone.utc).isoformat()

        resp = _table("orders").insert(order_row).execute()
        if getattr(resp, "error", None):
            return False, f"Insert order failed: {resp.error}", None
        if not resp.data:
            return False, "Insert order failed: no data returned", None

        order = resp.data[0]
        items = [
            {
                "orderId": order["id"],
                "productoId": p["productoId"],
                "quantity": p["quantity"],
                "unitPrice": p["unitPrice"],
                "totalPrice": p["totalPrice"],
            }
            for p in payload.get("products", [])
        ]

        items_resp = _table("order_items").insert(items).execute()
        if getattr(items_resp, "error", None):
            # the order row exists without items; drop it so a retry starts clean
            _table("orders").delete().eq("id", order["id"]).execute()
            return False, f"Insert order items failed: {items_resp.error}", None

        order["orderItems"] = items_resp.data or items
        return True, "Orden creada", order

    except Exception as e:
        logger.exception("Error creating order")
        return False, str(e), None


def fetch_orders_by_email(email: str) -> Tuple[bool, str, List[Dict[str, Any]]]:
    """
    Orders for one customer, newest first, items and product names included.
    """
    try:
        resp = (
            _table("orders")
            .select("*, orderItems:order_items(*, producto:producto(id, name, price))")
            .eq("email", email)
            .order("createdAt", desc=True)
            .execute()
        )

        if getattr(resp, "error", None):
            return False, f"Fetch failed: {resp.error}", []

        if not resp.data:
            return True, "No rows found", []

        return True, "Fetched", resp.data

    except Exception as e:
        logger.exception("Error fetching orders for %s", email)
        return False, f"Unexpected error: {e}", []


def fetch_products() -> Tuple[bool, str, List[Dict[str, Any]]]:
    """
    Read-only catalog rows for the checkout page: id, name, price, sizes.
    """
    try:
        resp = _table("producto").select("id, name, price, sizes").execute()

        if getattr(resp, "error", None):
            return False, f"Fetch failed: {resp.error}", []

        return True, "Fetched", resp.data or []

    except Exception as e:
        logger.exception("Error fetching products")
        return False, f"Unexpected error: {e}", []


def fetch_config_snapshot() -> Tuple[ConfigSnapshot, str]:
    """
    Settings + coupons straight from the tables, the same data the config
    endpoint serves. The etag is derived from the newest coupon update.
    """
    settings_resp = _table("setting").select("key, value").execute()
    cupones_resp = _table("cupon").select("*").order("updatedAt", desc=True).execute()

    for resp in (settings_resp, cupones_resp):
        if getattr(resp, "error", None):
            raise ConfigFetchError(f"Fetch failed: {resp.error}")

    settings = {row["key"]: str(row["value"]) for row in settings_resp.data or []}
    cupones = cupones_resp.data or []

    last_updated = max(
        (datetime.fromisoformat(c["updatedAt"].replace("Z", "+00:00")) for c in cupones if c.get("updatedAt")),
        default=datetime.fromtimestamp(0, tz=timezone.utc),
    )
    etag = f'"{int(last_updated.timestamp() * 1000)}"'

    snapshot = ConfigSnapshot(settings=settings, cupones=cupones, last_updated=last_updated.isoformat())
    return snapshot, etag


def supabase_config_fetcher(etag: Optional[str]) -> FetchResult:
    """ConfigCache fetcher that reads the tables directly."""
    try:
        snapshot, new_etag = fetch_config_snapshot()
    except ConfigFetchError:
        raise
    except Exception as e:
        raise ConfigFetchError(str(e)) from e

    if etag and etag == new_etag:
        return FetchResult(status=NOT_MODIFIED, etag=etag)
    return FetchResult(status=200, data=snapshot, etag=new_etag)

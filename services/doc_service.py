import datetime
from typing import List, Dict

from googleapiclient.discovery import Resource

from domain.models import Order, OrderLine
from services.invoice_service import customer_rows, invoice_totals
from services.pricing_service import RoundingPolicy
from utils.formatting import format_percent, format_soles


def generate_invoice_doc(
        docs: Resource,
        drive: Resource,
        template_doc_id: str,
        target_folder_id: str,
        order: Order,
        policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT,
) -> str:
    """
    1. Copy the invoice template doc into target folder
    2. Rename it with order id + timestamp
    3. Replace global placeholders (customer block and totals)
    4. Replace per-line placeholders
    5. Remove unused table rows (those still containing {{...}})

    The total is recomputed from the order's stored fields, the same way
    the .docx invoice does it.

    Returns:
        new Google Docs documentId
    """
    new_doc_id = _copy_template_to_folder(
        drive=drive,
        template_doc_id=template_doc_id,
        target_folder_id=target_folder_id,
        order=order,
    )

    requests = _global_replacements(order, policy)
    for i, line in enumerate(order.lines, start=1):
        requests.extend(_replace_all_requests(_build_line_placeholder_map(i, line)))

    if requests:
        docs.documents().batchUpdate(
            documentId=new_doc_id,
            body={"requests": requests},
        ).execute()

    _delete_unused_rows(docs, new_doc_id)

    return new_doc_id


# ---------- copy + rename ----------

def _copy_template_to_folder(
        drive: Resource,
        template_doc_id: str,
        target_folder_id: str,
        order: Order,
) -> str:
    timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    body = {
        "name": f"PEDIDO-{order.order_id}-{timestamp}",
        "parents": [target_folder_id],
    }

    copied = drive.files().copy(
        fileId=template_doc_id,
        body=body,
        fields="id",
        supportsAllDrives=True,
    ).execute()

    return copied["id"]


# ---------- placeholders ----------

def _replace_all_requests(replacements: Dict[str, str]) -> List[Dict]:
    return [
        {
            "replaceAllText": {
                "containsText": {
                    "text": placeholder,
                    "matchCase": True,
                },
                "replaceText": value,
            }
        }
        for placeholder, value in replacements.items()
    ]


def _global_replacements(order: Order, policy: RoundingPolicy) -> List[Dict]:
    """
      {{client_info}} -> one line per customer field
      {{subtotal}}, {{delivery}}, {{discount}}, {{total}}
    Delivery and discount are blank when zero.
    """
    totals = invoice_totals(order, policy)

    discount = ""
    if totals.discount_percent > 0:
        discount = f"-{format_soles(totals.discount_amount)} ({format_percent(totals.discount_percent)}%)"

    return _replace_all_requests(
        {
            "{{order_id}}": str(order.order_id),
            "{{client_info}}": "\n".join(customer_rows(order)),
            "{{subtotal}}": format_soles(totals.subtotal),
            "{{delivery}}": format_soles(totals.delivery) if totals.delivery > 0 else "",
            "{{discount}}": discount,
            "{{total}}": format_soles(totals.total),
        }
    )


def _build_line_placeholder_map(i: int, line: OrderLine) -> Dict[str, str]:
    """
    Mapping for line n = i:
      {{product_i}}, {{price_i}}, {{qty_i}}, {{line_total_i}}
    """
    name = f"{line.name} ({line.size_label})" if line.size_label else line.name
    return {
        f"{{{{product_{i}}}}}": name,
        f"{{{{price_{i}}}}}": format_soles(line.unit_price),
        f"{{{{qty_{i}}}}}": str(line.quantity),
        f"{{{{line_total_{i}}}}}": format_soles(line.total_price),
    }


# ---------- delete unused rows ----------

def _delete_unused_rows(
        docs: Resource,
        document_id: str,
) -> None:
    """
    Delete table rows that still contain any '{{' after replacements.
    Those rows had no matching order line.
    """
    doc = docs.documents().get(documentId=document_id).execute()
    content = doc.get("body", {}).get("content", [])

    delete_requests: List[Dict] = []

    for elem in content:
        table = elem.get("table")
        if not table:
            continue

        # Google Docs has no tableId; tables are addressed by start index
        table_start_index = elem.get("startIndex")
        if table_start_index is None:
            continue

        for row_idx, row in enumerate(table.get("tableRows", [])):
            if "{{" in _get_row_text(row):
                delete_requests.append(
                    {
                        "deleteTableRow": {
                            "tableCellLocation": {
                                "tableStartLocation": {
                                    "index": table_start_index
                                },
                                "rowIndex": row_idx,
                            }
                        }
                    }
                )

    # bottom to top so indices stay valid
    if delete_requests:
        delete_requests.reverse()
        docs.documents().batchUpdate(
            documentId=document_id,
            body={"requests": delete_requests},
        ).execute()


def _get_row_text(row: Dict) -> str:
    texts: List[str] = []

    for cell in row.get("tableCells", []):
        for elem in cell.get("content", []):
            para = elem.get("paragraph")
            if not para:
                continue
            for run in para.get("elements", []):
                text_run = run.get("textRun")
                if text_run:
                    texts.append(text_run.get("content", ""))

    return "".join(texts)

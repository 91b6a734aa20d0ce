# tienda/services/invoice_publish_service.py

import io
import logging
from typing import Dict

from config import AppConfig
from domain.models import Order
from google_client import get_docs_service, get_drive_service
from services.doc_service import generate_invoice_doc
from services.drive_service import archive_invoice
from services.invoice_service import create_invoice_docx, invoice_docx_bytes, invoice_filename

logger = logging.getLogger(__name__)


def generate_invoice_documents(order: Order, app_config: AppConfig) -> Dict[str, str]:
    """
    Produce every invoice artifact the configuration asks for:
      - the local .docx (always)
      - a Drive archive copy of that .docx when INVOICE_FOLDER_ID is set
      - a Google Docs invoice from TEMPLATE_INVOICE_DOC_ID when both ids are set

    Returns:
      {
        "docx_path": "/abs/path/pedido-<id>.docx",
        "drive_file_id": "" | "<id>",
        "google_doc_id": "" | "<id>",
      }
    """
    policy = app_config.rounding_policy
    result = {
        "docx_path": create_invoice_docx(order, app_config.invoice_output_dir, policy),
        "drive_file_id": "",
        "google_doc_id": "",
    }

    folder_id = app_config.invoice_folder_id
    if not folder_id:
        return result

    drive = get_drive_service()
    result["drive_file_id"] = archive_invoice(
        drive,
        folder_id,
        invoice_filename(order),
        io.BytesIO(invoice_docx_bytes(order, policy)),
    )
    logger.info("Invoice for order %s archived as %s", order.order_id, result["drive_file_id"])

    if app_config.template_invoice_doc_id:
        docs = get_docs_service()
        result["google_doc_id"] = generate_invoice_doc(
            docs,
            drive,
            app_config.template_invoice_doc_id,
            folder_id,
            order,
            policy,
        )
        logger.info("Google Docs invoice for order %s: %s", order.order_id, result["google_doc_id"])

    return result

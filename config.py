# tienda/config.py

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from services.pricing_service import RoundingPolicy

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_SUPPORT_PHONE = "958284730"
COUNTRY_CODE = "51"


@dataclass(frozen=True)
class AppConfig:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    schema: str
    config_url: Optional[str]  # remote settings + cupones endpoint
    config_cache_path: Path
    google_credentials_json: Optional[str]
    google_token_file: str
    template_invoice_doc_id: Optional[str]
    invoice_folder_id: Optional[str]
    invoice_output_dir: Path
    rounding_policy: RoundingPolicy
    support_phone: str


def load_app_config() -> AppConfig:
    load_dotenv()
    return AppConfig(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        schema=os.getenv("SCHEMA", "public"),
        config_url=os.getenv("CONFIG_URL"),
        config_cache_path=Path(os.getenv("CONFIG_CACHE_PATH", BASE_DIR / ".cache" / "app_config_cache.json")),
        google_credentials_json=os.getenv("GOOGLE_CREDENTIALS_JSON"),
        google_token_file=os.getenv("GOOGLE_TOKEN_FILE", "token_docs.json"),
        template_invoice_doc_id=os.getenv("TEMPLATE_INVOICE_DOC_ID"),
        invoice_folder_id=os.getenv("INVOICE_FOLDER_ID"),
        invoice_output_dir=Path(os.getenv("INVOICE_OUTPUT_DIR", BASE_DIR / "invoices")),
        rounding_policy=RoundingPolicy.parse(os.getenv("ROUNDING_POLICY")),
        support_phone=os.getenv("SUPPORT_PHONE", DEFAULT_SUPPORT_PHONE),
    )

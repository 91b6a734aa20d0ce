# tienda/services/drive_service.py
from typing import Optional, List, Dict
from googleapiclient.discovery import Resource
from googleapiclient.http import MediaIoBaseUpload

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def find_invoice_in_folder(
    drive: Resource,
    folder_id: str,
    filename: str,
) -> Optional[Dict]:
    """Existing archived invoice with the same name, if any."""
    escaped = filename.replace("'", "\\'")
    query = (
        f"name = '{escaped}' and "
        f"'{folder_id}' in parents and "
        f"trashed = false"
    )

    resp = drive.files().list(
        q=query,
        fields="files(id, name)",
        pageSize=1,
        supportsAllDrives=True,
        includeItemsFromAllDrives=True,
    ).execute()

    files: List[Dict] = resp.get("files", [])
    return files[0] if files else None


def archive_invoice(
    drive: Resource,
    folder_id: str,
    filename: str,
    media_stream,
) -> str:
    """
    Upload a .docx invoice into the archive folder. An invoice with the same
    name is overwritten in place so re-generating an order keeps one file.
    Returns the Drive file id.
    """
    media = MediaIoBaseUpload(media_stream, mimetype=DOCX_MIMETYPE, resumable=False)

    existing = find_invoice_in_folder(drive, folder_id, filename)
    if existing:
        drive.files().update(
            fileId=existing["id"],
            media_body=media,
            supportsAllDrives=True,
        ).execute()
        return existing["id"]

    file = drive.files().create(
        body={"name": filename, "parents": [folder_id]},
        media_body=media,
        fields="id",
        supportsAllDrives=True,
    ).execute()

    return file["id"]

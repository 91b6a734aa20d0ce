from unittest.mock import MagicMock

from services.doc_service import generate_invoice_doc


def make_clients(leftover_rows):
    docs = MagicMock()
    drive = MagicMock()
    drive.files().copy().execute.return_value = {"id": "new-doc"}
    docs.documents().get().execute.return_value = {
        "body": {
            "content": [
                {
                    "startIndex": 5,
                    "table": {
                        "tableRows": [
                            {"tableCells": [{"content": [{"paragraph": {"elements": [{"textRun": {"content": text}}]}}]}]}
                            for text in leftover_rows
                        ]
                    },
                }
            ]
        }
    }
    return docs, drive


def batch_requests(docs):
    return [c.kwargs["body"]["requests"] for c in docs.documents().batchUpdate.call_args_list]


def test_replacements_use_recomputed_total(make_order):
    docs, drive = make_clients(["Polo", "Gorra"])
    doc_id = generate_invoice_doc(docs, drive, "template", "folder", make_order())

    assert doc_id == "new-doc"
    replacements = {
        r["replaceAllText"]["containsText"]["text"]: r["replaceAllText"]["replaceText"]
        for r in batch_requests(docs)[0]
    }
    assert replacements["{{total}}"] == "S/ 95.00"
    assert replacements["{{discount}}"] == "-S/ 15.00 (15%)"
    assert replacements["{{product_1}}"] == "Polo básico (M)"
    assert replacements["{{qty_2}}"] == "1"
    assert "Cliente: Ana Torres" in replacements["{{client_info}}"]


def test_copy_goes_to_target_folder(make_order):
    docs, drive = make_clients([])
    generate_invoice_doc(docs, drive, "template", "folder", make_order())
    kwargs = drive.files().copy.call_args.kwargs
    assert kwargs["fileId"] == "template"
    assert kwargs["body"]["parents"] == ["folder"]
    assert kwargs["body"]["name"].startswith("PEDIDO-42-")


def test_unused_rows_deleted_bottom_up(make_order):
    docs, drive = make_clients(["Polo", "{{product_3}}", "{{product_4}}"])
    generate_invoice_doc(docs, drive, "template", "folder", make_order())

    deletes = batch_requests(docs)[-1]
    row_indexes = [d["deleteTableRow"]["tableCellLocation"]["rowIndex"] for d in deletes]
    assert row_indexes == [2, 1]
    assert deletes[0]["deleteTableRow"]["tableCellLocation"]["tableStartLocation"]["index"] == 5


def test_no_delete_call_when_everything_filled(make_order):
    docs, drive = make_clients(["Polo", "Gorra"])
    generate_invoice_doc(docs, drive, "template", "folder", make_order())
    assert len(batch_requests(docs)) == 1

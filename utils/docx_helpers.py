from typing import Iterable, Optional

from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.table import Table, _Cell


def set_cell_text(cell: _Cell, text: str, bold: bool = False, align: Optional[WD_ALIGN_PARAGRAPH] = None) -> None:
    """
    Replace whatever the cell holds with a single run of `text`.
    """
    paragraph = cell.paragraphs[0]
    for run in paragraph.runs:
        run.text = ""
    run = paragraph.runs[0] if paragraph.runs else paragraph.add_run()
    run.text = text
    run.bold = bold
    if align is not None:
        paragraph.alignment = align


def add_table_row(table: Table, values: Iterable[str], bold: bool = False, right_align_from: int = 1) -> None:
    """
    Append a row; columns from `right_align_from` on are right aligned
    (amount columns).
    """
    cells = table.add_row().cells
    for i, value in enumerate(values):
        align = WD_ALIGN_PARAGRAPH.RIGHT if i >= right_align_from else None
        set_cell_text(cells[i], value, bold=bold, align=align)

from io import BytesIO
from typing import Iterable

from openpyxl import Workbook

from models import Vote

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EXPORT_FILENAME = "votantes.xlsx"
SHEET_TITLE = "Votantes"
HEADERS = ["Nombre", "RUT", "Correo", "Teléfono", "Fecha"]


def build_voters_workbook(votes: Iterable[Vote]) -> bytes:
    """Render voter identities (no selections) as an .xlsx file."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append(HEADERS)

    for vote in votes:
        sheet.append([
            vote.nombre,
            vote.rut,
            vote.correo,
            vote.telefono,
            vote.created_at.isoformat(),
        ])
        # Voter input is stored as text, never as a formula
        for cell in sheet[sheet.max_row]:
            cell.data_type = "s"

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()

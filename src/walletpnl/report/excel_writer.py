"""ExcelWriter: builds a per-wallet PnL workbook with openpyxl."""

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from walletpnl.domain.models.pnl import WalletReport
from walletpnl.report.data_collector import ReportData, collect

# Sheet definitions: (sheet_name, headers, data_attr, number_formats)
# number_formats: dict of column_index (0-based) → openpyxl number format
SHEET_DEFS: list[tuple[str, list[str], str, dict[int, str]]] = [
    (
        "summary",
        ["Metric", "Value"],
        "summary",
        {},
    ),
    (
        "positions",
        ["Asset", "Quantity", "Price (USD)", "Value (USD)"],
        "positions",
        {1: "#,##0.000000", 2: "$#,##0.000000", 3: "$#,##0.00"},
    ),
    (
        "open_lots",
        ["Asset", "Remaining Qty", "Cost Basis/Unit (USD)", "Total Cost (USD)", "Asset Unrealized (USD)"],
        "open_lots",
        {1: "#,##0.000000", 2: "$#,##0.000000", 3: "$#,##0.00", 4: "$#,##0.00"},
    ),
    (
        "realized_gains",
        ["Asset", "Quantity", "Cost Basis (USD)", "Proceeds (USD)", "Gain/Loss (USD)"],
        "realized_gains",
        {1: "#,##0.000000", 2: "$#,##0.00", 3: "$#,##0.00", 4: "$#,##0.00"},
    ),
    (
        "missing_prices",
        ["Asset"],
        "missing_prices",
        {},
    ),
]

HEADER_FONT = Font(bold=True)


class ExcelWriter:
    """Writes a WalletReport to an in-memory Excel buffer."""

    def write_to_buffer(self, report: WalletReport | ReportData) -> BytesIO:
        data = report if isinstance(report, ReportData) else collect(report)
        wb = Workbook()

        for idx, (sheet_name, headers, data_attr, num_fmts) in enumerate(SHEET_DEFS):
            if idx == 0:
                ws = wb.active
                ws.title = sheet_name
            else:
                ws = wb.create_sheet(title=sheet_name)

            for col_idx, header in enumerate(headers, start=1):
                cell = ws.cell(row=1, column=col_idx, value=header)
                cell.font = HEADER_FONT

            sheet_data = getattr(data, data_attr, [])

            if data_attr == "missing_prices":
                for row_idx, asset_id in enumerate(sheet_data, start=2):
                    ws.cell(row=row_idx, column=1, value=asset_id)
            else:
                for row_idx, row in enumerate(sheet_data, start=2):
                    for col_idx, value in enumerate(row, start=1):
                        cell = ws.cell(row=row_idx, column=col_idx, value=value)
                        fmt = num_fmts.get(col_idx - 1)  # col_idx is 1-based, num_fmts keys are 0-based
                        if fmt:
                            cell.number_format = fmt

            _auto_fit_columns(ws)

        buf = BytesIO()
        wb.save(buf)
        buf.seek(0)
        return buf


def _auto_fit_columns(ws) -> None:
    """Set column widths based on content (approximate)."""
    for col_cells in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col_cells[0].column)
        for cell in col_cells:
            if cell.value is not None:
                max_len = max(max_len, len(str(cell.value)))
        ws.column_dimensions[col_letter].width = min(max_len + 3, 50)

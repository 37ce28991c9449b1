import openpyxl
from pathlib import Path


class ExcelAdapter:
    """Reads the active sheet of an .xlsx inventory export; the first row holds the headers."""

    def can_handle(self, file_path):
        return Path(file_path).suffix.lower() in [".xlsx", ".xlsm"]

    def read(self, file_path):
        if not Path(file_path).exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        wb = openpyxl.load_workbook(file_path, data_only=True, read_only=True)
        try:
            ws = wb.active
            row_iter = ws.iter_rows(values_only=True)
            header_row = next(row_iter, None)
            if header_row is None:
                return []

            headers = [str(h).strip() if h is not None else None for h in header_row]

            rows = []
            for row in row_iter:
                if all(value is None for value in row):
                    continue
                rows.append({h: v for h, v in zip(headers, row) if h})
            return rows
        finally:
            wb.close()

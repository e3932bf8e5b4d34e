import openpyxl
from pathlib import Path


class ExcelAdapter:
    def can_handle(self, file_path):
        return Path(file_path).suffix.lower() in [".xlsx", ".xlsm"]

    def read(self, file_path):
        if not Path(file_path).exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)
        try:
            ws = wb.active
            row_iter = ws.iter_rows(values_only=True)
            header_row = next(row_iter, None)
            if header_row is None:
                return []

            headers = [str(h) if h is not None else None for h in header_row]
            rows = []
            for row in row_iter:
                if all(cell is None for cell in row):
                    continue
                row_dict = {}
                for idx, header in enumerate(headers):
                    if header is None:
                        continue
                    value = row[idx] if idx < len(row) else None
                    row_dict[header] = str(value) if value is not None else ""
                rows.append(row_dict)
            return rows
        finally:
            wb.close()

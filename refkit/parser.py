from .normalizer import CollectionNormalizer, NormalizationResult
from typing import List, Dict, Any, Optional
from pathlib import Path
import csv
import json
import logging
import openpyxl

logger = logging.getLogger(__name__)

DEFAULT_NAME_SEPARATOR = "-"


def collection_name_of(file_path: str, separator: str = DEFAULT_NAME_SEPARATOR) -> str:
    """Infer the collection name from a file name.
    
    The name is the file stem up to the first separator, trimmed:
    ``"Stations - export 2024.csv"`` -> ``"Stations"``.
    """
    stem = Path(file_path).stem
    if separator:
        stem = stem.split(separator, 1)[0]
    return stem.strip()


class TableSetParser:
    """Reads a directory of collection tables and writes normalized ones."""
    
    def __init__(self, normalizer: Optional[CollectionNormalizer] = None,
                 name_separator: str = DEFAULT_NAME_SEPARATOR):
        """Initialize the parser.
        
        Args:
            normalizer: Normalizer to run (default: CollectionNormalizer with default schemas)
            name_separator: Separator ending the collection name in file names
        """
        self.adapters = []
        self.normalizer = normalizer or CollectionNormalizer()
        self.name_separator = name_separator
    
    def register_adapter(self, adapter):
        """Register a file adapter for reading.
        
        Args:
            adapter: Adapter instance with can_handle() and read() methods
        """
        self.adapters.append(adapter)
    
    def _adapter_for(self, file_path: str):
        for a in self.adapters:
            if a.can_handle(file_path):
                return a
        return None
    
    def read_file(self, file_path: str) -> List[Dict[str, Any]]:
        """Read raw rows from one file.
        
        Raises:
            ValueError: If no adapter is found for the file
        """
        adapter = self._adapter_for(file_path)
        if adapter is None:
            raise ValueError(f"No adapter found for {file_path}")
        return adapter.read(file_path)
    
    def read_directory(self, input_dir: str) -> Dict[str, List[Dict[str, Any]]]:
        """Read every supported file in a directory, keyed by collection name.
        
        Files are visited in name order. Several files inferring the same
        collection name are concatenated.
        
        Raises:
            FileNotFoundError: If the directory doesn't exist
        """
        directory = Path(input_dir)
        if not directory.is_dir():
            raise FileNotFoundError(f"Input directory not found: {input_dir}")
        
        tables: Dict[str, List[Dict[str, Any]]] = {}
        for path in sorted(p for p in directory.iterdir() if p.is_file()):
            if self._adapter_for(str(path)) is None:
                logger.warning(f"No adapter for {path.name}, skipping")
                continue
            
            name = collection_name_of(str(path), self.name_separator)
            rows = self.read_file(str(path))
            logger.info(f"Read {len(rows)} rows from {path.name} as '{name}'")
            tables.setdefault(name, []).extend(rows)
        
        return tables
    
    def parse(self, input_dir: str) -> NormalizationResult:
        """Read a directory and normalize all of its tables."""
        return self.normalizer.normalize(self.read_directory(input_dir))
    
    def export(self, data: List[Dict[str, Any]], output_path: str,
               headers: Optional[List[str]] = None, format: Optional[str] = None) -> str:
        """Export one table to a file.
        
        Args:
            data: Rows to write
            output_path: Path where the file should be saved
            headers: Column order (default: keys in order of first appearance)
            format: 'csv', 'excel', 'json', or None to use the file extension
            
        Returns:
            Path to the exported file
            
        Raises:
            ValueError: If format is not supported
        """
        output_path = Path(output_path)
        
        if format is None:
            suffix = output_path.suffix.lower()
            if suffix in ['.xlsx', '.xls']:
                format = 'excel'
            elif suffix == '.json':
                format = 'json'
            else:
                format = 'csv'
        
        format = format.lower()
        
        if headers is None:
            seen: Dict[str, None] = {}
            for row in data:
                seen.update(dict.fromkeys(row))
            headers = list(seen)
        
        output_path.parent.mkdir(parents=True, exist_ok=True)
        
        if format == 'csv':
            self._export_csv(data, output_path, headers)
        elif format == 'excel':
            self._export_excel(data, output_path, headers)
        elif format == 'json':
            self._export_json(data, output_path, headers)
        else:
            raise ValueError(f"Unsupported export format: {format}. Supported formats: csv, excel, json")
        
        return str(output_path)
    
    def _export_csv(self, data: List[Dict[str, Any]], output_path: Path, headers: List[str]) -> None:
        """Export data to CSV file."""
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=headers, extrasaction='ignore',
                                    quoting=csv.QUOTE_ALL)
            writer.writeheader()
            for row in data:
                writer.writerow({header: row.get(header, '') for header in headers})
    
    def _export_excel(self, data: List[Dict[str, Any]], output_path: Path, headers: List[str]) -> None:
        """Export data to Excel file."""
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = output_path.stem[:31] or "Sheet1"
        
        for col_idx, header in enumerate(headers, start=1):
            ws.cell(row=1, column=col_idx, value=header)
        
        for row_idx, row_data in enumerate(data, start=2):
            for col_idx, header in enumerate(headers, start=1):
                ws.cell(row=row_idx, column=col_idx, value=row_data.get(header, ''))
        
        wb.save(output_path)
    
    def _export_json(self, data: List[Dict[str, Any]], output_path: Path, headers: List[str]) -> None:
        """Export data to JSON file."""
        ordered = [{header: row.get(header, '') for header in headers} for row in data]
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(ordered, f, indent=2, ensure_ascii=False)
    
    def export_result(self, result: NormalizationResult, output_dir: str,
                      format: str = 'csv') -> Dict[str, str]:
        """Write every table of a result to ``<output_dir>/<Collection>.<ext>``.
        
        Returns:
            Collection name -> written path
        """
        extension = {'csv': '.csv', 'excel': '.xlsx', 'json': '.json'}.get(format.lower())
        if extension is None:
            raise ValueError(f"Unsupported export format: {format}. Supported formats: csv, excel, json")
        
        written = {}
        for name, rows in list(result.tables.items()) + list(result.passthrough.items()):
            path = Path(output_dir) / f"{name}{extension}"
            written[name] = self.export(rows, str(path), headers=result.headers.get(name), format=format)
            logger.info(f"Wrote {len(rows)} rows to {written[name]}")
        
        return written
    
    def parse_and_export(self, input_dir: str, output_dir: str,
                         format: str = 'csv') -> Dict[str, str]:
        """Normalize a directory of tables and write the results.
        
        Convenience method that combines parse() and export_result().
        """
        result = self.parse(input_dir)
        return self.export_result(result, output_dir, format=format)

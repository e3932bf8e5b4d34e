import csv
import logging
import chardet
from pathlib import Path
from typing import List, Dict

logger = logging.getLogger(__name__)

FALLBACK_ENCODINGS = ['latin-1', 'cp1252', 'iso-8859-1']


class CsvAdapter:
    """CSV adapter for reading spreadsheet exports.
    
    Handles:
    - Multiple encodings (UTF-8, UTF-8-BOM, Windows-1252, ISO-8859-1, etc.)
    - Different delimiters (comma, semicolon, tab)
    - Quoted cells containing delimiters and line breaks
    """
    
    def can_handle(self, file_path: str) -> bool:
        """Check if this adapter can handle the given file."""
        return Path(file_path).suffix.lower() in [".csv", ".tsv"]
    
    def _detect_encoding(self, file_path: str) -> str:
        """Detect file encoding using chardet with fallback to UTF-8."""
        with open(file_path, 'rb') as f:
            raw_data = f.read(10000)  # First 10KB is enough for detection
        
        # Spreadsheet exports often carry a BOM
        if raw_data.startswith(b'\xef\xbb\xbf'):
            return 'utf-8-sig'
        
        encoding = chardet.detect(raw_data).get('encoding') or 'utf-8'
        
        encoding_lower = encoding.lower()
        if 'utf-8' in encoding_lower or 'utf8' in encoding_lower or encoding_lower == 'ascii':
            return 'utf-8'
        
        return encoding
    
    def _detect_delimiter(self, sample: str, suffix: str) -> str:
        """Pick the delimiter from the file suffix or the header line."""
        if suffix == '.tsv':
            return '\t'
        
        try:
            return csv.Sniffer().sniff(sample, delimiters=',;\t').delimiter
        except csv.Error:
            pass
        
        # Sniffer gives up on single-column or irregular samples
        first_line = sample.split('\n', 1)[0]
        counts = {d: first_line.count(d) for d in (',', ';', '\t')}
        best = max(counts, key=counts.get)
        return best if counts[best] > 0 else ','
    
    def _read_rows(self, file_path: str, encoding: str) -> List[Dict[str, str]]:
        with open(file_path, 'r', encoding=encoding, newline='') as f:
            sample = f.read(4096)
            f.seek(0)
            delimiter = self._detect_delimiter(sample, Path(file_path).suffix.lower())
            reader = csv.DictReader(f, delimiter=delimiter)
            return [
                {
                    key: str(value) if value is not None else ''
                    for key, value in row.items()
                }
                for row in reader
            ]
    
    def read(self, file_path: str) -> List[Dict[str, str]]:
        """Read CSV file and return raw rows as list of dictionaries.
        
        Header names are returned as they appear in the file, including
        any surrounding whitespace.
        
        Args:
            file_path: Path to the CSV/TSV file
            
        Returns:
            List of dictionaries, one per data row
            
        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file cannot be decoded or parsed
        """
        path = Path(file_path)
        
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        
        if path.stat().st_size == 0:
            return []
        
        encoding = self._detect_encoding(file_path)
        
        try:
            return self._read_rows(file_path, encoding)
        except UnicodeDecodeError as e:
            logger.warning(f"Could not decode {path.name} as {encoding}, trying fallbacks")
            for fallback_encoding in FALLBACK_ENCODINGS:
                try:
                    return self._read_rows(file_path, fallback_encoding)
                except UnicodeDecodeError:
                    continue
            raise ValueError(f"Could not decode file {file_path}: {e}")
        except csv.Error as e:
            raise ValueError(f"Error parsing CSV file {file_path}: {e}")

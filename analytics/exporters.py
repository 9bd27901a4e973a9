"""CSV and JSON exporters for analytics records"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def to_plain(data: Any) -> Any:
    """Convert pydantic models (possibly nested in lists/dicts) to plain data"""
    if isinstance(data, BaseModel):
        return data.model_dump()
    if isinstance(data, dict):
        return {key: to_plain(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_plain(item) for item in data]
    return data


class CSVExporter:
    """Writes a list of flat records as CSV"""

    def __init__(
        self,
        delimiter: str = ",",
        include_headers: bool = True,
        headers: Optional[Sequence[str]] = None,
        encoding: str = "utf-8",
    ):
        self.delimiter = delimiter
        self.include_headers = include_headers
        self.headers = list(headers) if headers else None
        self.encoding = encoding

    def stringify(self, rows: Iterable[Any]) -> str:
        """Render rows as CSV text

        Columns default to the keys of the first row; missing and None
        values render as empty cells.
        """
        records: List[Dict[str, Any]] = to_plain(list(rows))
        if not records:
            return ""

        headers = self.headers or list(records[0].keys())
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=self.delimiter, lineterminator="\n")

        if self.include_headers:
            writer.writerow(headers)
        for record in records:
            writer.writerow(
                ["" if record.get(header) is None else record.get(header) for header in headers]
            )

        return buffer.getvalue().rstrip("\n")

    def write_file(self, rows: Iterable[Any], file_path: PathLike) -> Path:
        path = Path(file_path)
        path.write_text(self.stringify(rows), encoding=self.encoding)
        logger.debug(f"Wrote CSV to {path}")
        return path


class JSONExporter:
    """Writes any analytics payload as JSON"""

    def __init__(self, pretty: bool = True, encoding: str = "utf-8"):
        self.pretty = pretty
        self.encoding = encoding

    def stringify(self, data: Any) -> str:
        return json.dumps(to_plain(data), indent=2 if self.pretty else None, ensure_ascii=False)

    def write_file(self, data: Any, file_path: PathLike) -> Path:
        path = Path(file_path)
        path.write_text(self.stringify(data), encoding=self.encoding)
        logger.debug(f"Wrote JSON to {path}")
        return path

"""
Ground Truth Loader Module.

Loads expected field values for evaluation, keyed by source file.

Supported Formats:
    - JSON: a list of records, ``{"records": [...]}``, or an object keyed
      by filename
    - CSV: one record per row with a header line
"""

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from receipt_engine.utils.exceptions import ConfigurationError
from receipt_engine.utils.logger import get_logger

logger = get_logger(__name__)


class GroundTruthLoader:
    """
    Loads and indexes ground truth records.

    Example:
        >>> loader = GroundTruthLoader("ground_truth.json")
        >>> loader.get_by_filename("receipts/dominos.jpg")["amount"]
        '450.50'
    """

    REQUIRED_FIELDS = ['amount', 'date', 'merchant']

    def __init__(self, file_path: Optional[Union[str, Path]] = None) -> None:
        self.file_path = Path(file_path) if file_path else None
        self.data: List[Dict[str, Any]] = []
        self._file_index: Dict[str, int] = {}

        if self.file_path:
            self.load(self.file_path)

    def load(self, file_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """
        Load ground truth from file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigurationError: If the format is unsupported or the content malformed.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Ground truth file not found: {path}")

        extension = path.suffix.lower()
        if extension == '.json':
            self.data = self._load_json(path)
        elif extension == '.csv':
            self.data = self._load_csv(path)
        else:
            raise ConfigurationError(
                f"Unsupported ground truth format: {extension}",
                {"path": str(path), "supported": ['.json', '.csv']}
            )

        self._build_index()
        logger.info(f"Loaded {len(self.data)} ground truth records from {path.name}")
        return self.data

    def _load_json(self, path: Path) -> List[Dict[str, Any]]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid ground truth JSON: {path.name}", {"reason": str(e)})

        if isinstance(data, dict):
            if 'records' in data:
                data = data['records']
            else:
                data = [{**record, 'source_file': name} for name, record in data.items()]

        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise ConfigurationError(
                f"Ground truth must be a list of records: {path.name}",
                {"path": str(path)}
            )
        return data

    def _load_csv(self, path: Path) -> List[Dict[str, Any]]:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return [
                {key.strip(): (value.strip() if isinstance(value, str) else value)
                 for key, value in row.items() if key}
                for row in csv.DictReader(f)
            ]

    def _build_index(self) -> None:
        self._file_index = {}
        for idx, record in enumerate(self.data):
            filename = record.get('source_file') or record.get('filename')
            if filename:
                self._file_index[filename] = idx
                self._file_index[Path(filename).name] = idx

    def get_all(self) -> List[Dict[str, Any]]:
        return self.data

    def get_by_filename(self, filename: Optional[str]) -> Optional[Dict[str, Any]]:
        """Record for a source file, matched by full path or base name."""
        if not filename:
            return None
        if filename in self._file_index:
            return self.data[self._file_index[filename]]

        normalized = Path(filename).name
        if normalized in self._file_index:
            return self.data[self._file_index[normalized]]
        return None

    def validate(self) -> Dict[str, Any]:
        """Count records missing any of ``REQUIRED_FIELDS``."""
        results = {
            'total_records': len(self.data),
            'valid_records': 0,
            'invalid_records': 0,
            'missing_fields': {},
        }

        for record in self.data:
            missing = [f for f in self.REQUIRED_FIELDS if not record.get(f)]
            for name in missing:
                results['missing_fields'][name] = results['missing_fields'].get(name, 0) + 1
            if missing:
                results['invalid_records'] += 1
            else:
                results['valid_records'] += 1

        logger.info(
            f"Ground truth validation: {results['valid_records']}/{results['total_records']} valid"
        )
        return results

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.data)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self.data[index]

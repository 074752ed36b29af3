"""Round input files and the overrides CSV"""
import csv
import io
import json
import logging
import os
from typing import Any, Protocol, Union

from grants_matching.errors import InputFileNotFoundError, OverridesColumnNotFoundError
from grants_matching.models.inputs import Overrides

logger = logging.getLogger(__name__)

REQUIRED_OVERRIDE_COLUMNS = ('contributionId', 'coefficient')

class DataProvider(Protocol):
    def load_file(self, description: str, path: str) -> Any:
        ...

class FileSystemDataProvider:
    """Loads JSON input files relative to a base directory"""

    def __init__(self, base_path: str):
        self.base_path = base_path

    def load_file(self, description: str, path: str) -> Any:
        full_path = os.path.join(self.base_path, path)
        if not os.path.isfile(full_path):
            raise InputFileNotFoundError(description)

        with open(full_path, 'r', encoding='utf-8') as f:
            return json.load(f)

def parse_overrides(buf: Union[bytes, str]) -> Overrides:
    """
    Parse an overrides CSV into contributionId -> coefficient.

    Raises:
        OverridesColumnNotFoundError: If a required column is missing
    """
    text = buf.decode('utf-8') if isinstance(buf, bytes) else buf
    reader = csv.DictReader(io.StringIO(text))
    headers = reader.fieldnames or []

    for column in REQUIRED_OVERRIDE_COLUMNS:
        if column not in headers:
            raise OverridesColumnNotFoundError(column)

    overrides: Overrides = {}
    for row in reader:
        overrides[row['contributionId']] = row['coefficient']

    logger.info(f"Loaded {len(overrides)} contribution overrides")
    return overrides

import json
import logging
import pandas as pd
from io import StringIO
from pathlib import Path
from typing import Any, List
from chartsense.core.errors import ErrorCodes, TableParseError
from chartsense.core.performance import track_performance
from chartsense.core.schemas import Table

logger = logging.getLogger(__name__)

# Allowed file extensions
ALLOWED_EXTENSIONS = {'.csv', '.json'}

CANDIDATE_DELIMITERS = ('\t', ';')


def validate_file_extension(filename: str) -> str:
    """
    Validate file extension.
    Returns the extension if valid, raises TableParseError otherwise.
    """
    if not filename:
        raise TableParseError(ErrorCodes.INVALID_FILE_TYPE, "Filename is required.")

    file_ext = Path(filename).suffix.lower()

    if file_ext not in ALLOWED_EXTENSIONS:
        raise TableParseError(
            ErrorCodes.INVALID_FILE_TYPE,
            f"Unsupported file format: {file_ext or '(none)'}. Allowed formats: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    return file_ext


def decode_contents(contents: bytes) -> str:
    """Decode as UTF-8 (dropping a BOM), falling back to latin1."""
    try:
        text = contents.decode('utf-8-sig')
    except UnicodeDecodeError:
        text = contents.decode('latin1')
    return text


def detect_delimiter(header_line: str) -> str:
    """
    Pick the delimiter from the header line.

    Tab or semicolon win only when the header has no comma.
    """
    for delimiter in CANDIDATE_DELIMITERS:
        if delimiter in header_line and ',' not in header_line:
            return delimiter
    return ','


def sanitize_column_name(col: Any) -> str:
    col = str(col).replace('\n', ' ').replace('\r', ' ')
    return ' '.join(col.split())


@track_performance("parse_csv")
def parse_csv(contents: bytes) -> Table:
    """
    Parse CSV bytes into a Table.

    Cells are read as text and tagged by Table.from_records, so numbers,
    booleans-as-text and dates are decided in one place.
    """
    text = decode_contents(contents)
    if not text.strip():
        raise TableParseError(ErrorCodes.FILE_EMPTY)

    first_line = text.splitlines()[0]
    delimiter = detect_delimiter(first_line)

    try:
        df = pd.read_csv(
            StringIO(text),
            sep=delimiter,
            dtype=str,
            skipinitialspace=True,
            skip_blank_lines=True,
            on_bad_lines='skip',
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        logger.error(f"Error parsing CSV file: {e}")
        raise TableParseError(ErrorCodes.PARSE_ERROR, str(e)) from e

    # Remove fully empty rows/columns
    df = df.dropna(how='all', axis=0)
    df = df.dropna(how='all', axis=1)
    df.columns = [sanitize_column_name(col) for col in df.columns]

    if df.empty:
        raise TableParseError(ErrorCodes.FILE_EMPTY, "The file has a header but no data rows.")

    logger.info(f"Parsed CSV with delimiter {delimiter!r}, shape: {df.shape}")
    return Table.from_dataframe(df)


@track_performance("parse_json")
def parse_json(contents: bytes) -> Table:
    """
    Parse JSON bytes into a Table.

    Accepts an array of objects or a single object (one row).
    """
    text = decode_contents(contents).strip()
    if not text:
        raise TableParseError(ErrorCodes.FILE_EMPTY)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        raise TableParseError(ErrorCodes.PARSE_ERROR, f"Invalid JSON: {e.msg} at line {e.lineno}.") from e

    if isinstance(data, dict):
        records: List[Any] = [data]
    elif isinstance(data, list):
        records = data
    else:
        raise TableParseError(ErrorCodes.INVALID_TABLE, "JSON must contain an object or an array of objects.")

    if not records:
        raise TableParseError(ErrorCodes.FILE_EMPTY, "The JSON array is empty.")

    table = Table.from_records(records)
    logger.info(f"Parsed JSON with {table.row_count} rows and {len(table.columns)} columns")
    return table


def parse_file(contents: bytes, filename: str) -> Table:
    """
    Parse uploaded file contents into a Table.
    Validates the file extension before parsing.
    """
    file_ext = validate_file_extension(filename)

    if len(contents) == 0:
        raise TableParseError(ErrorCodes.FILE_EMPTY)

    if file_ext == '.csv':
        return parse_csv(contents)
    return parse_json(contents)

"""
Error message constants and utilities for user-friendly error handling.
"""
from typing import Dict, Optional

# Error codes
class ErrorCodes:
    FILE_EMPTY = "FILE_EMPTY"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_TABLE = "INVALID_TABLE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

# User-friendly error messages
ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    ErrorCodes.FILE_EMPTY: {
        "message": "Hmm, your file looks empty",
        "detail": "We couldn't find any data in the file you uploaded. This might happen if the file wasn't saved properly.",
        "suggestion": "Make sure your file has a header row and at least one row of data, then try again."
    },
    ErrorCodes.INVALID_FILE_TYPE: {
        "message": "We need a CSV or JSON file",
        "detail": "We can read CSV (.csv) and JSON (.json) files. Your file type isn't something we can read yet.",
        "suggestion": "Export your sheet as CSV, or save your records as a JSON array of objects."
    },
    ErrorCodes.PARSE_ERROR: {
        "message": "We're having trouble reading your file",
        "detail": "Something's not quite right with the file format. It might be corrupted or use an unexpected delimiter.",
        "suggestion": "Save the file again as plain CSV with comma, tab or semicolon delimiters, or as valid JSON."
    },
    ErrorCodes.INVALID_TABLE: {
        "message": "Your data isn't shaped like a table",
        "detail": "Every row must be a set of named fields. We found rows that are not.",
        "suggestion": "For JSON, use an array of objects like [{\"name\": \"A\", \"value\": 1}]."
    },
    ErrorCodes.UNKNOWN_ERROR: {
        "message": "Hmm, something unexpected happened",
        "detail": "We encountered an issue we weren't expecting.",
        "suggestion": "Give it another try in a moment, or try a different file."
    }
}

def get_error_response(error_code: str, additional_detail: Optional[str] = None) -> Dict[str, str]:
    """
    Get user-friendly error response for an error code.

    Args:
        error_code: One of the ErrorCodes constants
        additional_detail: Optional additional detail to append

    Returns:
        Dictionary with code, message, detail, and suggestion
    """
    error_info = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCodes.UNKNOWN_ERROR])

    response = {
        "code": error_code,
        "message": error_info["message"],
        "detail": error_info["detail"],
        "suggestion": error_info["suggestion"]
    }

    if additional_detail:
        response["detail"] = f"{response['detail']} {additional_detail}"

    return response


class TableParseError(Exception):
    """Raised when input cannot be turned into a well-formed table."""

    def __init__(self, code: str, additional_detail: Optional[str] = None):
        self.code = code
        self.additional_detail = additional_detail
        super().__init__(additional_detail or ERROR_MESSAGES.get(code, ERROR_MESSAGES[ErrorCodes.UNKNOWN_ERROR])["message"])

    def to_response(self) -> Dict[str, str]:
        return get_error_response(self.code, self.additional_detail)

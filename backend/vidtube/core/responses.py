# vidtube/core/responses.py
from typing import Any


def api_response(status_code: int, data: Any, message: str = "Success") -> dict:
    """
    Build the success envelope shared by every endpoint.

    Returns:
        dict with statusCode, data, message and success (True for any status below 400)
    """
    return {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": status_code < 400,
    }

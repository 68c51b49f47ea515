# app/exceptions/storage.py
from fastapi import HTTPException, status


class InvalidUploadError(HTTPException):
    """Rejected image upload: wrong type, empty or too large"""

    def __init__(self, detail: str = "Invalid file upload"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

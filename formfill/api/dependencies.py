"""API dependencies for dependency injection."""
from io import BytesIO
from zipfile import BadZipFile

from fastapi import UploadFile, HTTPException
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from formfill.config import config
from formfill.services.matcher import Matcher
from formfill.sources.tabular import SPREADSHEET_SUFFIXES
from formfill.storage.profiles import ProfileStore


def validate_upload_suffix(filename: str, suffixes: tuple) -> None:
    """Reject uploads whose extension is not one of `suffixes`."""
    if not filename or not filename.lower().endswith(suffixes):
        raise HTTPException(
            status_code=400,
            detail=f"File must be one of: {', '.join(suffixes)}"
        )


async def read_upload(file: UploadFile, suffixes: tuple) -> bytes:
    """Validate an upload's extension and read its contents."""
    validate_upload_suffix(file.filename, suffixes)
    return await file.read()


async def get_workbook_from_upload(file: UploadFile) -> tuple:
    """Create a writable workbook from an uploaded form file."""
    contents = await read_upload(file, SPREADSHEET_SUFFIXES)
    try:
        workbook = load_workbook(BytesIO(contents))
    except (InvalidFileException, BadZipFile, KeyError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Cannot open workbook: {e}")
    return workbook, file.filename


def get_matcher() -> Matcher:
    """Create a matcher with the configured synonyms and weights."""
    return Matcher()


def get_profile_store() -> ProfileStore:
    """Profile store at the configured path."""
    return ProfileStore(config.storage.profiles_path)

"""
Shared fixtures.

The environment is pointed at a throwaway data directory before any
studydesk module is imported, so the module-level services (db_service,
routers' PDF store) never touch a real database or upload folder.
"""

import io
import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="studydesk-tests-"))
os.environ["STUDYDESK_DB_PATH"] = str(_TEST_ROOT / "data" / "studydesk.db")
os.environ["STUDYDESK_UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["SUMMARIZER_BASE_URL"] = ""

import pytest
from PyPDF2 import PdfWriter


@pytest.fixture
def temp_db_path():
    """Path to a fresh SQLite file in its own temporary directory"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield str(Path(temp_dir) / "test.db")


@pytest.fixture
def make_pdf():
    """Build PDF bytes with the given number of blank pages"""

    def _make_pdf(num_pages: int = 3, width: float = 612, height: float = 792) -> bytes:
        writer = PdfWriter()
        for _ in range(num_pages):
            writer.add_blank_page(width=width, height=height)
        buffer = io.BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    return _make_pdf

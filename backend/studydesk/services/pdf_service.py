import io
import logging
import re
import time
from pathlib import Path

import pdfplumber
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError

from ..config import config

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


class PDFService:
    """
    File storage and page access for uploaded PDFs.

    Files live under <upload_dir>/<user_id>/<timestamp>_<sanitized name>.
    """

    def __init__(self, upload_dir: str | None = None) -> None:
        self.upload_dir = Path(upload_dir or config.UPLOAD_DIR)
        if not self.upload_dir.exists():
            self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def sanitize_filename(filename: str) -> str:
        """
        Replace everything except letters, digits, dots and dashes
        """
        return _UNSAFE_FILENAME_CHARS.sub("_", filename)

    def store_upload(self, user_id: str, filename: str, content: bytes) -> Path:
        """
        Write an uploaded file to the user's directory and return its path
        """
        if not filename.lower().endswith(".pdf"):
            raise ValueError(f"{filename} is not a PDF file")

        user_dir_name = self.sanitize_filename(user_id)
        if user_dir_name.strip(".") == "":
            raise ValueError(f"Invalid user id for upload: {user_id!r}")

        user_dir = self.upload_dir / user_dir_name
        if self.upload_dir.resolve() not in user_dir.resolve().parents:
            raise ValueError(f"Invalid user id for upload: {user_id!r}")
        user_dir.mkdir(parents=True, exist_ok=True)

        stored_name = f"{int(time.time() * 1000)}_{self.sanitize_filename(filename)}"
        file_path = user_dir / stored_name
        file_path.write_bytes(content)
        logger.info(f"Stored upload {filename} as {file_path} ({len(content)} bytes)")
        return file_path

    def get_pdf_path(self, file_path: str | Path) -> Path:
        """
        Resolve a stored file path, checking it exists and is a PDF
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"PDF {path.name} not found")

        if not path.suffix.lower() == ".pdf":
            raise ValueError(f"{path.name} is not a PDF file")

        return path

    def count_pages(self, content: bytes) -> int:
        """
        Count the pages of PDF bytes
        """
        try:
            return len(PdfReader(io.BytesIO(content)).pages)
        except PdfReadError as e:
            raise ValueError(f"Invalid PDF file: {e}") from e

    def extract_page_text(self, file_path: str | Path, page_num: int) -> str:
        """
        Extract text from a specific page of the PDF
        """
        path = self.get_pdf_path(file_path)

        try:
            with pdfplumber.open(path) as pdf:
                if page_num < 1 or page_num > len(pdf.pages):
                    raise ValueError(
                        f"Page {page_num} is out of range. PDF has {len(pdf.pages)} pages."
                    )

                # pdfplumber uses 0-based indexing
                text = pdf.pages[page_num - 1].extract_text()
                return text or ""
        except ValueError:
            raise
        except Exception as e:
            # Fallback to PyPDF2 if pdfplumber fails
            logger.warning(f"pdfplumber failed on {path.name}, falling back to PyPDF2: {e}")
            try:
                reader = PdfReader(str(path))
                if page_num < 1 or page_num > len(reader.pages):
                    raise ValueError(
                        f"Page {page_num} is out of range. PDF has {len(reader.pages)} pages."
                    )
                return reader.pages[page_num - 1].extract_text() or ""
            except ValueError:
                raise
            except Exception as fallback_error:
                raise Exception(
                    f"Failed to extract text with both pdfplumber and PyPDF2: {str(e)}, {str(fallback_error)}"
                )

    def extract_page_pdf(self, file_path: str | Path, page_num: int) -> bytes:
        """
        Copy a single page into a new PDF document and return its bytes
        """
        path = self.get_pdf_path(file_path)
        reader = PdfReader(str(path))

        if page_num < 1 or page_num > len(reader.pages):
            raise ValueError(
                f"Page {page_num} is out of range. PDF has {len(reader.pages)} pages."
            )

        writer = PdfWriter()
        writer.add_page(reader.pages[page_num - 1])
        buffer = io.BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    def delete_file(self, file_path: str | Path) -> bool:
        path = Path(file_path)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted file {path}")
        return True

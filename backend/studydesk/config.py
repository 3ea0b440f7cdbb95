"""
Application configuration.

Values are read from the environment (and an optional .env file) once at
import time. Services receive them as constructor defaults so tests can pass
their own paths.
"""

import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    # SQLite database shared by all storage services
    DB_PATH = os.getenv("STUDYDESK_DB_PATH", "data/studydesk.db")

    # Uploaded PDFs are stored as uploads/<user_id>/<timestamp>_<name>
    UPLOAD_DIR = os.getenv("STUDYDESK_UPLOAD_DIR", "uploads")
    MAX_UPLOAD_MB = int(os.getenv("STUDYDESK_MAX_UPLOAD_MB", "50"))

    # External summarization service (multipart form API)
    SUMMARIZER_BASE_URL = os.getenv("SUMMARIZER_BASE_URL")
    SUMMARIZER_TIMEOUT = float(os.getenv("SUMMARIZER_TIMEOUT", "120"))

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("STUDYDESK_CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]


config = Config()

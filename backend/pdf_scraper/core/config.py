# File: backend/pdf_scraper/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    PROJECT_NAME: str = "PDF Resume Extraction API"
    PROJECT_VERSION: str = "0.1.0"

    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pdf_scraper.db")

    # OpenAI settings
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_API_BASE: str = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4.1")
    OPENAI_TIMEOUT: float = float(os.getenv("OPENAI_TIMEOUT", "120"))

    # Supabase storage settings
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY", "")
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "pdfs")

    # Extraction pipeline settings
    MAX_PDF_PAGES: int = int(os.getenv("MAX_PDF_PAGES", "5"))
    PDF_RENDER_SCALE: float = float(os.getenv("PDF_RENDER_SCALE", "2"))
    VISION_CONCURRENCY: int = int(os.getenv("VISION_CONCURRENCY", "1"))
    MAX_FILE_SIZE_BYTES: int = int(os.getenv("MAX_FILE_SIZE_BYTES", str(10 * 1024 * 1024)))

    # Attempt history truncation
    MAX_STORED_ERROR_CHARS: int = 1000
    MAX_STORED_RESPONSE_CHARS: int = 2000

    # CORS settings
    CORS_ORIGINS: list = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

settings = Settings()

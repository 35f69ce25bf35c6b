"""
Supabase Storage access for uploaded résumé PDFs.
All source-file I/O goes through this module.
"""

import logging

from pdf_scraper.core.config import settings

logger = logging.getLogger(__name__)

# Lazy-init Supabase client (service role for full bucket access)
_supabase_client = None


def _get_supabase():
    """Get or create the Supabase client using the service key."""
    global _supabase_client
    if _supabase_client is None:
        from supabase import create_client
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
            raise RuntimeError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for storage operations"
            )
        _supabase_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
    return _supabase_client


def build_storage_path(user_id: str, upload_id: str, file_name: str) -> str:
    """``<user>/<upload>/<file name>``, keeping only the base name of the upload."""
    base_name = file_name.replace("\\", "/").rsplit("/", 1)[-1] or "document.pdf"
    return f"{user_id}/{upload_id}/{base_name}"


class SupabaseStorage:
    def __init__(self, bucket: str = None):
        self.bucket = bucket or settings.STORAGE_BUCKET

    async def upload_file(self, storage_path: str, file_bytes: bytes, content_type: str = "application/pdf") -> str:
        """Upload file bytes. Returns the storage_path."""
        client = _get_supabase()
        client.storage.from_(self.bucket).upload(
            path=storage_path,
            file=file_bytes,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        logger.info(f"Uploaded {len(file_bytes)} bytes to {self.bucket}/{storage_path}")
        return storage_path

    async def download_file(self, storage_path: str) -> bytes:
        client = _get_supabase()
        data = client.storage.from_(self.bucket).download(storage_path)
        logger.info(f"Downloaded {len(data)} bytes from {self.bucket}/{storage_path}")
        return data

    async def delete_file(self, storage_path: str) -> None:
        client = _get_supabase()
        client.storage.from_(self.bucket).remove([storage_path])
        logger.info(f"Deleted {self.bucket}/{storage_path}")


def get_storage() -> SupabaseStorage:
    return SupabaseStorage()

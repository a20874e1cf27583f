# tuktuk/core/storage_utils.py
import logging
import time
import uuid

from tuktuk.core.config import get_settings
from tuktuk.core.supabase_client import supabase_admin

logger = logging.getLogger(__name__)


def _bucket():
    return supabase_admin().storage.from_(get_settings().PRODUCT_IMAGES_BUCKET)


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    Args:
        path: Full object path inside the bucket.
              Example: "<business_id>/1718000000000_<uuid>.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    bucket = _bucket()
    bucket.upload(path, file_bytes, {"content-type": content_type, "upsert": "true"})
    return bucket.get_public_url(path)


def delete_from_storage(path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path.
    """
    _bucket().remove([path])


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/product-images/b/1_x.png
        -> 'b/1_x.png'
    """
    marker = f"/storage/v1/object/public/{get_settings().PRODUCT_IMAGES_BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def delete_public_url(url: str) -> None:
    """
    Best-effort delete of a file by its public URL.
    No-op if the URL does not belong to this bucket; failures are logged.
    """
    path = extract_path_from_public_url(url)
    if not path:
        return
    try:
        delete_from_storage(path)
    except Exception as e:
        logger.warning("Storage cleanup failed for %s: %s", path, e)


def generate_object_path(business_id: uuid.UUID, ext: str) -> str:
    """
    Object path for a product image: "<business_id>/<millis>_<uuid4>.<ext>".
    """
    millis = int(time.time() * 1000)
    return f"{business_id}/{millis}_{uuid.uuid4()}.{ext}"

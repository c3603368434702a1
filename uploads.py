"""
Image uploads to the Cloudinary asset host.

Each uploaded file is read into memory, base64 encoded into a data URI tagged
with its content type and handed to the Cloudinary SDK. The host answers with
a stable https URL that is stored on the property.
"""

import asyncio
import base64
import logging
from typing import List, Optional, Sequence

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

logger = logging.getLogger(__name__)


class AssetUploadError(Exception):
    """The asset host rejected an upload or could not be reached."""


def encode_data_uri(payload: bytes, content_type: Optional[str]) -> str:
    mime_type = content_type or "application/octet-stream"
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class CloudinaryUploader:
    def __init__(self, cloud_name: str, api_key: str, api_secret: str, *, timeout: float = 60.0):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret
        self.timeout = timeout

    async def upload(self, data_uri: str, folder: str) -> str:
        """Upload one data URI and return its secure URL."""
        try:
            # the SDK call blocks on network I/O
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                data_uri,
                folder=folder,
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self._api_secret,
                timeout=self.timeout,
            )
        except CloudinaryError as exc:
            logger.warning("Asset host rejected upload to %s: %s", folder, exc)
            raise AssetUploadError(f"Upload failed: {exc}") from exc

        secure_url = (result or {}).get("secure_url")
        if not secure_url:
            raise AssetUploadError("Upload response did not include a secure_url")
        logger.info("Uploaded image to %s: %s", folder, secure_url)
        return secure_url


async def upload_images(
    uploader: CloudinaryUploader,
    files: Sequence[UploadFile],
    folder: str,
    concurrency: int = 1,
) -> List[str]:
    """
    Upload files and return their URLs in the same order as files.

    With concurrency=1 the uploads run one after another. Higher values run
    up to that many at once; results are still placed by input position. If
    any upload fails the rest are cancelled and the error propagates. Images
    that were already uploaded stay on the host and are logged.
    """
    urls: List[Optional[str]] = [None] * len(files)
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def _upload(index: int, upload_file: UploadFile) -> None:
        async with semaphore:
            payload = await upload_file.read()
            data_uri = encode_data_uri(payload, upload_file.content_type)
            logger.debug("Uploading %s (%s, %d bytes)", upload_file.filename, upload_file.content_type, len(payload))
            urls[index] = await uploader.upload(data_uri, folder)

    try:
        if concurrency <= 1:
            for index, upload_file in enumerate(files):
                await _upload(index, upload_file)
        else:
            tasks = [asyncio.ensure_future(_upload(i, f)) for i, f in enumerate(files)]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
    except AssetUploadError:
        orphaned = [url for url in urls if url]
        if orphaned:
            logger.warning("Upload aborted; %d image(s) left on asset host: %s", len(orphaned), orphaned)
        raise

    return [url for url in urls if url is not None]

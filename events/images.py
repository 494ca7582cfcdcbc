"""
Event image storage.

Images are validated locally (size, declared type and the real format sniffed with Pillow) and
then handed to the image store, which returns a public URL. :class:`CloudinaryImageStore` talks to
the Cloudinary upload API with a signed request.
"""

import hashlib
import io
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Self

import requests
import structlog
from django.conf import settings
from furl import furl
from PIL import Image
from requests.exceptions import (
    ConnectionError as RequestsConnectionError,
    RequestException,
    Timeout,
)
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from events.errors import FieldValidationError, ImageUploadError


logger = structlog.get_logger(__name__)

#: Declared content type -> format name reported by Pillow
ALLOWED_IMAGE_TYPES: dict[str, str] = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}
INVALID_FORMAT_MESSAGE = "Invalid image format. Please use JPEG, PNG, or WebP"
NOT_CONFIGURED_MESSAGE = "Cloud storage service is not properly configured"
UPLOAD_ATTEMPTS = 3


@dataclass(frozen=True)
class StoredImage:
    """An image accepted by the image store."""

    url: str
    public_id: str = ""
    format: str = ""
    size: int = 0


class ImageStore(ABC):
    """Validates event images and stores them behind a public URL."""

    allowed_types = ALLOWED_IMAGE_TYPES

    def __init__(self, max_bytes: int | None = None) -> None:
        """
        Initialize the store.

        Args:
            max_bytes: Largest accepted payload; defaults to ``IMAGE_UPLOAD_MAX_BYTES``

        """
        self.max_bytes = settings.IMAGE_UPLOAD_MAX_BYTES if max_bytes is None else max_bytes

    def validate(self, payload: bytes, content_type: str) -> str:
        """
        Check the payload and return its real format name.

        Raises:
            FieldValidationError: Empty, oversized, disallowed or mislabeled image

        """
        if not payload:
            raise FieldValidationError({"image": ["Event image is required"]})
        if len(payload) > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise FieldValidationError({"image": [f"Image size must be less than {limit_mb}MB"]})

        expected = self.allowed_types.get((content_type or "").split(";")[0].strip().lower())
        if expected is None:
            raise FieldValidationError({"image": [INVALID_FORMAT_MESSAGE]})

        actual = sniff_image_format(payload)
        if actual != expected:
            logger.info(
                "Image content does not match its type",
                declared=content_type,
                actual=actual,
            )
            raise FieldValidationError({"image": [INVALID_FORMAT_MESSAGE]})
        return actual

    def upload(self, payload: bytes, content_type: str, filename: str = "") -> StoredImage:
        """Validate ``payload`` and store it."""
        image_format = self.validate(payload, content_type)
        return self._store(payload, image_format, filename)

    @abstractmethod
    def _store(self, payload: bytes, image_format: str, filename: str) -> StoredImage:
        """Send a validated payload to the backing service."""


def sniff_image_format(payload: bytes) -> str | None:
    """Return the format Pillow detects in ``payload``, or None for undecodable data."""
    try:
        with Image.open(io.BytesIO(payload)) as image:
            image_format = image.format
            image.verify()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return None
    return image_format


# --------------------------------------------------------------------------------------------------
# Cloudinary
# --------------------------------------------------------------------------------------------------


@dataclass(frozen=True)
class CloudinaryConfig:
    """Credentials of a Cloudinary account."""

    cloud_name: str = ""
    api_key: str = ""
    api_secret: str = ""

    @classmethod
    def from_url(cls, url: str) -> Self:
        """Parse ``cloudinary://<api_key>:<api_secret>@<cloud_name>``."""
        parsed = furl(url)
        return cls(
            cloud_name=parsed.host or "",
            api_key=parsed.username or "",
            api_secret=parsed.password or "",
        )

    @classmethod
    def from_settings(cls) -> Self:
        """Read ``CLOUDINARY_URL``, falling back to the three individual settings."""
        if settings.CLOUDINARY_URL:
            return cls.from_url(settings.CLOUDINARY_URL)
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
        )

    @property
    def missing(self) -> list[str]:
        """Return the names of the unset credentials."""
        return [name for name in ("cloud_name", "api_key", "api_secret") if not getattr(self, name)]


class TransientUploadError(Exception):
    """The image store answered with a retryable status."""


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Return the Cloudinary request signature of ``params``."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()  # noqa: S324


class CloudinaryImageStore(ImageStore):
    """Stores images in a Cloudinary folder through the signed upload API."""

    def __init__(
        self,
        config: CloudinaryConfig | None = None,
        *,
        folder: str | None = None,
        max_bytes: int | None = None,
        timeout: int | None = None,
        wait: wait_base | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            config: Account credentials; read from settings when omitted
            folder: Target folder; defaults to ``IMAGE_UPLOAD_FOLDER``
            max_bytes: Largest accepted payload
            timeout: Request timeout in seconds
            wait: Back-off between upload attempts

        """
        super().__init__(max_bytes=max_bytes)
        self.config = config or CloudinaryConfig.from_settings()
        self.folder = settings.IMAGE_UPLOAD_FOLDER if folder is None else folder
        self.timeout = settings.CLOUDINARY_TIMEOUT if timeout is None else timeout
        self.wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    @property
    def upload_url(self) -> str:
        """Return the upload endpoint of the configured cloud."""
        url = furl(settings.CLOUDINARY_API_BASE_URL)
        url.add(path=[self.config.cloud_name, "image", "upload"])
        return url.url

    def _store(self, payload: bytes, image_format: str, filename: str) -> StoredImage:
        if self.config.missing:
            logger.error("Cloudinary configuration is incomplete", missing=self.config.missing)
            raise ImageUploadError(NOT_CONFIGURED_MESSAGE)

        logger.info(
            "Uploading image",
            size=len(payload),
            format=image_format,
            cloud_name=self.config.cloud_name,
        )
        retrying = Retrying(
            stop=stop_after_attempt(UPLOAD_ATTEMPTS),
            wait=self.wait,
            retry=retry_if_exception_type((Timeout, RequestsConnectionError, TransientUploadError)),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            response = retrying(self._post, payload, filename)
        except (RequestException, TransientUploadError) as exc:
            logger.error("Image store unreachable", error_type=type(exc).__name__, error=str(exc))
            raise ImageUploadError from exc

        if response.status_code in {401, 403}:
            logger.error("Image store rejected the credentials", status=response.status_code)
            raise ImageUploadError
        if not response.ok:
            logger.error(
                "Image store rejected the upload",
                status=response.status_code,
                body=response.text[:500],
            )
            raise ImageUploadError

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("Image store answered with invalid JSON", error=str(exc))
            raise ImageUploadError from exc
        url = body.get("secure_url") or body.get("url")
        if not url:
            logger.error("Image store response has no URL", keys=sorted(body))
            raise ImageUploadError

        stored = StoredImage(
            url=url,
            public_id=body.get("public_id", ""),
            format=body.get("format", image_format.lower()),
            size=body.get("bytes", len(payload)),
        )
        logger.info("Image uploaded", url=stored.url, public_id=stored.public_id)
        return stored

    def _post(self, payload: bytes, filename: str) -> requests.Response:
        params = {"folder": self.folder, "timestamp": str(int(time.time()))}
        response = requests.post(
            self.upload_url,
            data={
                **params,
                "api_key": self.config.api_key,
                "signature": sign_params(params, self.config.api_secret),
            },
            files={"file": (filename or "upload", payload)},
            timeout=self.timeout,
        )
        if response.status_code == 429 or response.status_code >= 500:  # noqa: PLR2004
            msg = f"Image store answered {response.status_code}"
            raise TransientUploadError(msg)
        return response

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        logger.warning(
            "Retrying image upload",
            attempt=retry_state.attempt_number,
            error=str(outcome.exception()) if outcome else None,
        )


def get_image_store() -> ImageStore:
    """Return the configured image store."""
    return CloudinaryImageStore()

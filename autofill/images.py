"""Image pipeline: base64 payloads in, synthetic file selection or drop out."""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .config import UploadConfig
from .dom import PageDocument, PageElement
from .models import DomEvent, FileTransfer, ImagePayload, TransferFile

logger = logging.getLogger(__name__)

BASE64 = "base64"


@dataclass(frozen=True)
class UploadResult:
    attempted: bool = False
    target_found: bool = False
    files: Tuple[TransferFile, ...] = ()
    via_drop: bool = False

    @property
    def delivered(self) -> bool:
        return self.attempted and bool(self.files)


def _strip_data_url(data: str) -> str:
    marker = ";base64,"
    if data.startswith("data:") and marker in data:
        return data.split(marker, 1)[1]
    return data


class ImagePipeline:
    def __init__(self, config: UploadConfig):
        self.config = config

    def decode(self, index: int, payload: ImagePayload) -> Optional[TransferFile]:
        """Turn one payload into a file, or None if it does not decode."""
        if payload.encoding != BASE64:
            logger.warning("Skipping image %d: unsupported encoding %r", index, payload.encoding)
            return None
        try:
            raw = base64.b64decode(_strip_data_url(payload.data.strip()), validate=True)
        except (binascii.Error, ValueError) as e:
            logger.warning("Skipping image %d: undecodable payload (%s)", index, e)
            return None
        if not raw:
            logger.warning("Skipping image %d: empty payload", index)
            return None
        return TransferFile(
            name=self.config.file_name_template.format(index=index),
            mime_type=payload.mime_type or self.config.content_type,
            data=raw,
        )

    async def decode_all(self, payloads: Sequence[ImagePayload]) -> Tuple[TransferFile, ...]:
        """Decode concurrently; the result keeps the input order."""
        decoded = await asyncio.gather(
            *(asyncio.to_thread(self.decode, i, p) for i, p in enumerate(payloads))
        )
        return tuple(f for f in decoded if f is not None)

    async def locate_target(self, document: PageDocument) -> Optional[PageElement]:
        for selector in self.config.target_selectors:
            found = await document.select(selector)
            if found:
                logger.debug("Upload target found with %s", selector)
                return found[0]
        return None

    async def upload(self, document: PageDocument, payloads: Sequence[ImagePayload]) -> UploadResult:
        if not payloads:
            return UploadResult()

        target = await self.locate_target(document)
        if target is None:
            logger.info("No drop zone found, skipping %d images", len(payloads))
            return UploadResult()

        files = await self.decode_all(payloads)
        if not files:
            logger.warning("None of the %d images could be decoded", len(payloads))
            return UploadResult(target_found=True)

        transfer = FileTransfer(files=files)
        if target.attributes().is_file_input:
            await target.assign_files(transfer)
            await target.dispatch(DomEvent("change"))
            via_drop = False
        else:
            await target.dispatch(DomEvent("drop", cancelable=True, transfer=transfer))
            via_drop = True

        logger.info("Injected %d/%d images", len(files), len(payloads))
        return UploadResult(attempted=True, target_found=True, files=files, via_drop=via_drop)

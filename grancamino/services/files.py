"""
File content service.

Lists the Drive folder, classifies each file, and decodes it through the
content cache. A failure is confined to its own file: the file comes back
as unavailable and the rest of the folder is still processed.
"""

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from grancamino.core import metrics
from grancamino.core.constants import CacheNamespace, cache_key
from grancamino.core.exceptions import (
    DecodeUnsupportedError,
    MalformedTrackError,
    ProviderUnavailableError,
)
from grancamino.core.logging import PerformanceLogger
from grancamino.services.cache import ContentCache
from grancamino.services.classifier import FileDescriptor, FileKind, classify
from grancamino.services.context import FileContent
from grancamino.services.decoders import FileDecoder

logger = logging.getLogger(__name__)


class FileContentService:
    def __init__(
        self,
        provider,
        cache: ContentCache,
        decoder: Optional[FileDecoder] = None,
        folder_id: str = "",
        decode_timeout: float = 20.0,
        total_timeout: float = 45.0
    ):
        self.provider = provider
        self.cache = cache
        self.decoder = decoder or FileDecoder(provider)
        self.folder_id = folder_id
        self.decode_timeout = decode_timeout
        self.total_timeout = total_timeout
        self.perf = PerformanceLogger("files")

    @classmethod
    def from_settings(cls, settings, provider, cache: ContentCache) -> "FileContentService":
        return cls(
            provider,
            cache,
            decoder=FileDecoder(provider, strict_tracks=settings.TRACK_STRICT_POINTS),
            folder_id=settings.GOOGLE_DRIVE_FOLDER_ID,
            decode_timeout=settings.FILE_DECODE_TIMEOUT_SECONDS,
            total_timeout=settings.CONTEXT_TIMEOUT_SECONDS,
        )

    async def list_files(self) -> List[FileDescriptor]:
        """Folder listing through the cache; a provider failure yields an empty list."""
        if not self.folder_id:
            return []

        key = cache_key(CacheNamespace.LISTING, self.folder_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return list(cached)

        try:
            files = await asyncio.wait_for(
                asyncio.to_thread(self.provider.list_files, self.folder_id),
                timeout=self.decode_timeout
            )
        except ProviderUnavailableError as e:
            logger.warning(f"File listing unavailable: {e}")
            return []
        except asyncio.TimeoutError:
            logger.error(f"File listing timeout ({self.decode_timeout}s)")
            return []

        await self.cache.put(key, tuple(files))
        return list(files)

    async def load_file(self, descriptor: FileDescriptor) -> FileContent:
        kind = classify(descriptor)
        if kind == FileKind.UNKNOWN:
            metrics.file_decode_total.labels(kind=kind.value, outcome="unsupported").inc()
            return FileContent(descriptor, kind, error="unsupported file type")

        key = cache_key(CacheNamespace.CONTENT, descriptor.id, descriptor.version_tag)
        cached = await self.cache.get(key)
        if cached is not None:
            metrics.file_decode_total.labels(kind=kind.value, outcome="cached").inc()
            self.perf.log_file_decode(descriptor.name, kind.value, "cached", 0.0, cached=True)
            return FileContent(descriptor, kind, content=cached)

        start = time.perf_counter()
        content, error, outcome = None, None, "ok"
        try:
            content = await asyncio.wait_for(
                asyncio.to_thread(self.decoder.decode, descriptor, kind),
                timeout=self.decode_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Decode timeout for {descriptor.name} ({self.decode_timeout}s)")
            error, outcome = "timed out", "timeout"
        except MalformedTrackError as e:
            logger.warning(f"Malformed track {descriptor.name}: {e}")
            error, outcome = "malformed track", "malformed"
        except DecodeUnsupportedError as e:
            logger.warning(str(e))
            error, outcome = "unsupported file type", "unsupported"
        except ProviderUnavailableError as e:
            logger.warning(f"Could not fetch {descriptor.name}: {e}")
            error, outcome = "download failed", "provider_error"
        except Exception as e:
            logger.error(f"Failed to decode {descriptor.name}: {e}", exc_info=True)
            error, outcome = "decode failed", "error"

        duration_ms = (time.perf_counter() - start) * 1000
        metrics.file_decode_total.labels(kind=kind.value, outcome=outcome).inc()
        self.perf.log_file_decode(descriptor.name, kind.value, outcome, duration_ms)

        if content is None:
            return FileContent(descriptor, kind, error=error or "no content")

        await self.cache.put(key, content)
        return FileContent(descriptor, kind, content=content)

    async def load_all(self, files: Optional[Sequence[FileDescriptor]] = None) -> List[FileContent]:
        """
        Decode every file concurrently and return results in listing order.
        Files still running when the overall timeout expires are reported as
        timed out.
        """
        if files is None:
            files = await self.list_files()
        if not files:
            return []

        tasks = [asyncio.ensure_future(self.load_file(f)) for f in files]
        done, pending = await asyncio.wait(tasks, timeout=self.total_timeout)

        for task in pending:
            task.cancel()
        if pending:
            logger.error(f"{len(pending)} files not decoded within {self.total_timeout}s")

        results = []
        for descriptor, task in zip(files, tasks):
            if task in done:
                results.append(task.result())
            else:
                results.append(FileContent(descriptor, classify(descriptor), error="timed out"))
        return results

"""
File-backed durable tier.

The payload is stored as JSON at a fixed path.  Freshness is judged
from the file's modification time, so a value written by a previous
process is still served while it is within the window.  Data that
cannot be decoded is reported as corrupt rather than as a miss.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Type, Union

import aiofiles
import aiofiles.os as aios
from pydantic import BaseModel, ValidationError

from ratecache.exceptions import StorageIOError
from ratecache.models import ExchangeRateList
from ratecache.storage.base import Clock, ReadResult, is_fresh, utc_now

logger = logging.getLogger(__name__)


class FileSystemStorage:
    """JSON-file durable tier.

    Args:
        file_path: Location of the JSON file.
        expiration_interval: How long after its last modification the
            file is still considered fresh.
        model: Pydantic model the file content is validated into.
        clock: Callable returning the current UTC time.
        name: Tier name used in logs and resolver statistics.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        expiration_interval: timedelta,
        model: Type[BaseModel] = ExchangeRateList,
        clock: Clock = utc_now,
        name: str = "file",
    ) -> None:
        self.name = name
        self._path = Path(file_path)
        self._expiration_interval = expiration_interval
        self._model = model
        self._clock = clock

    @property
    def can_write(self) -> bool:
        return True

    @property
    def expiration_interval(self) -> timedelta:
        return self._expiration_interval

    @property
    def path(self) -> Path:
        return self._path

    async def read(self) -> ReadResult:
        """Load the stored payload if the file exists and is fresh.

        Returns:
            ``HIT`` with the decoded payload, ``ABSENT`` if the file is
            missing or stale, ``CORRUPT`` if it cannot be decoded.

        Raises:
            StorageIOError: If the file exists but cannot be read.
        """
        try:
            stat = await aios.stat(self._path)
        except FileNotFoundError:
            return ReadResult.absent()
        except OSError as e:
            raise StorageIOError(f"Cannot stat {self._path}: {e}") from e

        modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        if not is_fresh(modified, self._expiration_interval, self._clock()):
            logger.debug(
                "File tier entry expired",
                extra={"tier": self.name, "path": str(self._path)},
            )
            return ReadResult.absent()

        try:
            async with aiofiles.open(self._path, mode="rb") as fh:
                content = await fh.read()
        except FileNotFoundError:
            return ReadResult.absent()
        except OSError as e:
            raise StorageIOError(f"Cannot read {self._path}: {e}") from e

        try:
            value = self._model.model_validate_json(content)
        except (ValidationError, ValueError) as e:
            logger.error(
                "File tier holds undecodable data",
                extra={"tier": self.name, "path": str(self._path), "error": str(e)},
            )
            return ReadResult.corrupt(f"{self._path}: {e}")

        logger.debug("File tier hit", extra={"tier": self.name, "path": str(self._path)})
        return ReadResult.hit(value)

    async def write(self, value: BaseModel) -> None:
        """Persist *value* atomically, replacing any previous file.

        Raises:
            StorageIOError: If *value* is not an instance of the tier's model
                or cannot be serialized, or if the directory or file
                cannot be written.
        """
        if not isinstance(value, self._model):
            raise StorageIOError(
                f"Tier '{self.name}' stores {self._model.__name__}, got {type(value).__name__}"
            )
        try:
            content = value.model_dump_json(indent=2)
        except (TypeError, ValueError) as e:
            raise StorageIOError(f"Cannot serialize value for {self._path}: {e}") from e

        tmp_path = self._path.with_name(f".{self._path.name}.{os.getpid()}.tmp")
        try:
            await aios.makedirs(self._path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as fh:
                await fh.write(content)
            await aios.replace(tmp_path, self._path)
        except OSError as e:
            logger.error(
                "File tier write failed",
                extra={"tier": self.name, "path": str(self._path), "error": str(e)},
            )
            try:
                await aios.remove(tmp_path)
            except OSError:
                logger.debug("No temp file to clean up", extra={"path": str(tmp_path)})
            raise StorageIOError(f"Cannot write {self._path}: {e}") from e

        logger.debug("File tier set", extra={"tier": self.name, "path": str(self._path)})

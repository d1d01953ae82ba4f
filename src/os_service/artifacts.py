"""Service artifact persistence."""

import logging
import os
from pathlib import Path

import aiofiles
import aiofiles.os

from os_service.errors import ArtifactRemoveError, ArtifactWriteError
from os_service.templates import RenderedArtifact

logger = logging.getLogger(__name__)


def _mode_opener(mode: int):
    """Build an opener that creates the file with mode, even on overwrite."""

    def opener(path: str, flags: int) -> int:
        fd = os.open(path, flags, mode)
        os.fchmod(fd, mode)
        return fd

    return opener


async def write_artifact(artifact: RenderedArtifact) -> Path:
    """Write an artifact, creating parent directories as needed.

    Existing files are overwritten unconditionally. The file mode is applied
    to the open descriptor, so it holds regardless of umask or a previous
    mode.

    Returns:
        The path written.

    Raises:
        ArtifactWriteError: If the directory or file cannot be written.
    """
    path = artifact.path
    try:
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(
            path, "w", encoding="utf-8", opener=_mode_opener(artifact.mode)
        ) as f:
            await f.write(artifact.text)
    except OSError as e:
        raise ArtifactWriteError(path, e.strerror or str(e)) from e

    logger.debug("Wrote %s (mode %o)", path, artifact.mode)
    return path


async def remove_artifact(path: Path) -> bool:
    """Delete an artifact if it exists.

    Returns:
        True if a file was removed, False if it was already absent.

    Raises:
        ArtifactRemoveError: If the file exists but cannot be removed.
    """
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        logger.debug("Nothing to remove at %s", path)
        return False
    except OSError as e:
        raise ArtifactRemoveError(path, e.strerror or str(e)) from e

    logger.debug("Removed %s", path)
    return True

"""Data containers passed between the pipeline stages"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import DEFAULT_EXTENSION, DEFAULT_MIME_TYPE


@dataclass(frozen=True)
class MediaBlob:
    """A selected video, held in memory or referenced on disk.

    Attributes:
        name: Display name of the file, used for its extension and MIME type
        data: File contents when the blob lives in memory
        path: Location of the file when it lives on disk
    """
    name: str
    data: Optional[bytes] = field(default=None, repr=False)
    path: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.data is None and self.path is None:
            raise ValueError("MediaBlob needs either data or a path")

    @classmethod
    def from_path(cls, path: Path) -> "MediaBlob":
        path = Path(path)
        return cls(name=path.name, path=path)

    @property
    def size(self) -> int:
        if self.data is not None:
            return len(self.data)
        return self.path.stat().st_size

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix.lower() or DEFAULT_EXTENSION

    @property
    def mime_type(self) -> str:
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or DEFAULT_MIME_TYPE

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        return self.path.read_bytes()


@dataclass(frozen=True)
class ClipArtifact:
    """One produced clip, ready to be handed to the user.

    Attributes:
        index: 1-based position of the clip in the source
        filename: Download name, e.g. cortado_60s_clipe_001.mp4
        size_bytes: Size of the clip
        mime_type: MIME type of the source container
        clip_name: Name the engine wrote the clip under
        data: Clip contents
    """
    index: int
    filename: str
    size_bytes: int
    mime_type: str
    clip_name: str
    data: bytes = field(repr=False)

    def save(self, directory: Path) -> Path:
        """Write the clip into a directory under its download name."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / self.filename
        target.write_bytes(self.data)
        return target

"""Document store - open and save files the way the editor does."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from hashlib import sha256
from pathlib import Path
from typing import Callable, Optional

import aiofiles

from ..exceptions import DocumentError
from .base import Disposable, DocumentStore, TextDocument, subscribe

logger = logging.getLogger(__name__)


@dataclass
class Revision:
    """One saved state of a document (the editor's local history)."""
    path: Path
    digest: str
    size: int
    saved_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "digest": self.digest,
            "size": self.size,
            "saved_at": self.saved_at.isoformat(),
        }


class FileDocument(TextDocument):
    """A text file opened in the editor."""

    def __init__(self, store: "FileDocumentStore", path: Path, text: str, encoding: str):
        self._store = store
        self.path = path
        self.encoding = encoding
        self.text = text
        self._saved_text = text

    @property
    def is_dirty(self) -> bool:
        return self.text != self._saved_text

    def edit(self, text: str) -> None:
        """Replace the document's content (not written until saved)."""
        self.text = text

    async def save(self) -> bool:
        await self._store._save(self)
        self._saved_text = self.text
        return True


class FileDocumentStore(DocumentStore):
    """
    Documents backed by files on disk, read and written with aiofiles.

    Saving writes the file only when the document is dirty, but always
    records a revision and notifies on_did_save listeners, so saving a
    file another program changed makes that change a tracked revision.
    """

    def __init__(self, encoding: str = "utf-8", max_revisions: int = 50):
        self.encoding = encoding
        self.max_revisions = max_revisions
        self._documents: dict[Path, FileDocument] = {}
        self._history: dict[Path, list[Revision]] = {}
        self._save_listeners: list[Callable[[TextDocument], None]] = []
        self.active_document: Optional[FileDocument] = None

    @staticmethod
    def _key(path: Path | str) -> Path:
        return Path(path).expanduser().resolve()

    async def open_text_document(self, path: Path | str) -> FileDocument:
        path = self._key(path)
        document = self._documents.get(path)
        if document is not None and document.is_dirty:
            return document

        text = await self._read(path)
        if document is None:
            document = FileDocument(self, path, text, self.encoding)
            self._documents[path] = document
        else:
            document.text = text
            document._saved_text = text
        logger.debug(f"Opened document: {path}")
        return document

    async def show_text_document(self, document: TextDocument) -> None:
        self.active_document = document
        logger.info(f"Showing document: {document.path}")

    def on_did_save(self, listener: Callable[[TextDocument], None]) -> Disposable:
        return subscribe(self._save_listeners, listener)

    @property
    def open_documents(self) -> list[FileDocument]:
        return list(self._documents.values())

    def get_history(self, path: Path | str) -> list[Revision]:
        return list(self._history.get(self._key(path), []))

    # -------------------------------------------------------------------------
    # Disk I/O
    # -------------------------------------------------------------------------

    async def _read(self, path: Path) -> str:
        try:
            async with aiofiles.open(path, "r", encoding=self.encoding) as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentError(path, f"cannot read: {e}") from e

    async def _save(self, document: FileDocument) -> None:
        if document.is_dirty:
            try:
                async with aiofiles.open(document.path, "w", encoding=document.encoding) as f:
                    await f.write(document.text)
            except OSError as e:
                raise DocumentError(document.path, f"cannot write: {e}") from e

        encoded = document.text.encode(document.encoding)
        history = self._history.setdefault(document.path, [])
        history.append(Revision(
            path=document.path,
            digest=sha256(encoded).hexdigest(),
            size=len(encoded),
        ))
        del history[:-self.max_revisions]

        logger.debug(f"Saved document: {document.path}")

        for listener in list(self._save_listeners):
            try:
                listener(document)
            except Exception as e:
                logger.error(f"Error in save listener: {e}", exc_info=True)

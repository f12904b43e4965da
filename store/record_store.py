from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from config.settings import AppConfig
from utils.csv_codec import CSVDecodeError, decode, encode
from utils.logger import AppLogger


Record = Dict[str, object]
RecordHook = Callable[[Record, AppConfig], Record]


class StoreError(RuntimeError):
    """A record store could not read, decode or write its backing file.

    `kind` is ``"io"`` or ``"decode"``; `path` is the file involved.
    """

    def __init__(self, message: str, kind: str = "io", path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path


class RecordStore:
    """Whole-collection CSV store for one entity type.

    Contract:
    - One file per entity under `config.data_path`, mirrored byte-for-byte to
      `config.public_data_path` on every write.
    - `load_all()` returns every record; `replace_all()` overwrites the file
      with exactly the records given. There is no per-record update.
    - `normalize` runs on each record before it is written, `hydrate` on each
      record after it is read; derived fields live in these hooks.
    - Writes go through a temp file + ``os.replace`` so readers never see a
      half-written file. A per-store lock serialises access inside one
      process; separate processes still race last-write-wins.
    """

    def __init__(
        self,
        config: AppConfig,
        logger: AppLogger,
        name: str,
        file_name: str,
        header: Sequence[str],
        normalize: Optional[RecordHook] = None,
        hydrate: Optional[RecordHook] = None,
    ) -> None:
        self.config = config
        self.logger = logger
        self.name = name
        self.file_name = file_name
        self.header = list(header)
        self.normalize = normalize
        self.hydrate = hydrate
        self._lock = threading.RLock()
        self._event = name.upper() + "_CSV"

    @property
    def csv_path(self) -> Path:
        return self.config.data_path / self.file_name

    @property
    def public_csv_path(self) -> Path:
        return self.config.public_data_path / self.file_name

    def load_all(self) -> List[Record]:
        """Read and decode the whole collection.

        A missing file is first created with just the header row.
        """
        with self._lock:
            p = self.csv_path
            if not p.exists():
                self.logger.log_kv(self._event + "_CREATED", path=str(p))
                self.replace_all([])
            try:
                raw = p.read_bytes()
            except OSError as e:
                self.logger.log_kv(self._event + "_LOAD_ERROR", error=e, path=str(p))
                raise StoreError(f"Failed to read {self.name} from CSV file", "io", p) from e
            try:
                rows = decode(raw.decode("utf-8"), self.header)
            except (UnicodeDecodeError, CSVDecodeError) as e:
                self.logger.log_kv(self._event + "_DECODE_ERROR", error=e, path=str(p))
                raise StoreError(f"Failed to decode {self.name} CSV file", "decode", p) from e
        if self.hydrate is not None:
            rows = [self.hydrate(dict(r), self.config) for r in rows]
        self.logger.log_kv(self._event + "_LOAD", rows=len(rows), path=str(p))
        return rows

    def find(self, record_id: str) -> Optional[Record]:
        for r in self.load_all():
            if r.get("id") == record_id:
                return r
        return None

    def replace_all(self, records: Sequence[Record]) -> int:
        """Overwrite the collection with `records`. Returns the count written."""
        rows = [dict(r) for r in records]
        if self.normalize is not None:
            rows = [self.normalize(r, self.config) for r in rows]
        data = encode(rows, self.header).encode("utf-8")
        with self._lock:
            p = self.csv_path
            mirror = self.public_csv_path
            try:
                self._write_both(p, mirror, data)
            except OSError as e:
                self.logger.log_kv(self._event + "_WRITE_ERROR", error=e, path=str(p), public=str(mirror))
                raise StoreError(f"Failed to save {self.name} to CSV file", "io", p) from e
        self.logger.log_kv(self._event + "_WRITE", rows=len(rows), path=str(p), public=str(mirror))
        return len(rows)

    @classmethod
    def _write_both(cls, primary: Path, mirror: Path, data: bytes) -> None:
        """Commit `data` to the primary file and its mirror, or to neither.

        Both temp files are staged before either target is replaced; if the
        mirror replace still fails, the previous primary bytes are put back.
        """
        targets = [primary]
        if mirror.resolve() != primary.resolve():
            targets.append(mirror)
        staged: List[str] = []
        try:
            for target in targets:
                staged.append(cls._stage(target, data))
        except OSError:
            cls._discard(staged)
            raise
        previous = primary.read_bytes() if primary.exists() else None
        try:
            os.replace(staged[0], primary)
        except OSError:
            cls._discard(staged)
            raise
        if len(staged) == 2:
            try:
                os.replace(staged[1], mirror)
            except OSError:
                cls._discard(staged[1:])
                if previous is None:
                    primary.unlink()
                else:
                    os.replace(cls._stage(primary, previous), primary)
                raise

    @staticmethod
    def _stage(path: Path, data: bytes) -> str:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
        except BaseException:
            os.unlink(tmp)
            raise
        return tmp

    @staticmethod
    def _discard(tmps: List[str]) -> None:
        for tmp in tmps:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass

"""Migration source providers.

A source supplies the ordered list of named SQL blobs the reconciler
compares against the applied history. File names are the identity and the
ordering key, so every provider sorts by name and rejects duplicates.

- :class:`DirectorySource` reads ``*.sql`` files from a directory.
- :class:`PackageSource` reads the ``migrations/`` directory shipped inside
  an importable Python package, so the migration set travels with the
  wheel that installs it.
- :class:`StaticSource` serves an in-memory list.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterable
from pathlib import Path

from schema_spine.core.errors import SourceError
from schema_spine.core.migrations.models import SourceMigration


def _sorted_unique(migrations: Iterable[SourceMigration]) -> list[SourceMigration]:
    ordered = sorted(migrations, key=lambda m: m.name)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.name == current.name:
            raise SourceError(
                f"duplicate migration name {current.name}",
                context={"migration": current.name},
            )
    return ordered


class DirectorySource:
    """Reads ``*.sql`` migrations from a directory, sorted by file name."""

    def __init__(self, path: Path | str, *, pattern: str = "*.sql") -> None:
        self._path = Path(path)
        self._pattern = pattern

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[SourceMigration]:
        if not self._path.is_dir():
            raise SourceError(
                f"can't read migrations dir {self._path}",
                context={"path": str(self._path)},
            )

        migrations = []
        for sql_file in sorted(self._path.glob(self._pattern)):
            if not sql_file.is_file():
                continue
            # Stored bodies keep the file's own line endings.
            try:
                body = sql_file.read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise SourceError(
                    f"can't read migration file {sql_file.name}",
                    context={"filename": sql_file.name, "path": str(sql_file)},
                    cause=exc,
                ) from exc
            migrations.append(SourceMigration(name=sql_file.name, body=body))
        return _sorted_unique(migrations)

    def __repr__(self) -> str:
        return f"DirectorySource({str(self._path)!r})"


class PackageSource:
    """Reads migrations bundled in an importable package.

    ``PackageSource("myapp")`` loads ``myapp/migrations/*.sql`` from
    wherever ``myapp`` is installed.
    """

    def __init__(self, package: str, *, subdir: str = "migrations", pattern: str = "*.sql") -> None:
        self._package = package
        self._subdir = subdir
        self._pattern = pattern

    def directory(self) -> Path:
        """Resolve the bundled migrations directory."""
        try:
            module = importlib.import_module(self._package)
        except ImportError as exc:
            raise SourceError(
                f"can't import migrations package {self._package}",
                context={"package": self._package},
                cause=exc,
            ) from exc

        module_file = getattr(module, "__file__", None)
        if module_file is None:
            raise SourceError(
                f"package {self._package} has no location on disk",
                context={"package": self._package},
            )
        return Path(module_file).resolve().parent / self._subdir

    def load(self) -> list[SourceMigration]:
        return DirectorySource(self.directory(), pattern=self._pattern).load()

    def __repr__(self) -> str:
        return f"PackageSource({self._package!r}, subdir={self._subdir!r})"


class StaticSource:
    """Serves a fixed list of migrations (tests, programmatic use)."""

    def __init__(self, migrations: Iterable[SourceMigration | tuple[str, str]]) -> None:
        items = [m if isinstance(m, SourceMigration) else SourceMigration(*m) for m in migrations]
        self._migrations = _sorted_unique(items)

    def load(self) -> list[SourceMigration]:
        return list(self._migrations)

    def __repr__(self) -> str:
        return f"StaticSource({len(self._migrations)} migrations)"

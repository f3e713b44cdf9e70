"""Locate the primary markup payload inside an OmniFocus export archive.

Exports arrive in several undocumented container layouts. The detection
order is fixed, and each step only runs when the ones before it found
nothing:

1. ``contents.xml`` at the archive root
2. any entry whose path ends with ``contents.xml`` (wrapping directory)
3. ``OmniFocus.ofocus/contents.xml`` (legacy bundle path, caught by 2)
4. a top-level ``*.ofocus`` entry that is itself a zip, searched with 1-2
5. the sharded OmniFocus 4 layout: a primary ``*=*.zip`` entry, falling
   back to the first ``data/*.zip`` shard
"""

import io
import logging
import zipfile
import zlib

from focusflow.importer.errors import ArchiveLayoutUnrecognizedError, MarkupCorruptError
from focusflow.importer.models import PrimaryDocument

logger = logging.getLogger(__name__)

CONTENTS_NAME = "contents.xml"
LEGACY_BUNDLE_PATH = "OmniFocus.ofocus/contents.xml"
BUNDLE_EXTENSION = ".ofocus"
SHARD_EXTENSION = ".zip"
PAYLOAD_EXTENSIONS = (".xml", ".plist")

# Raised by zipfile for truncated, corrupt, encrypted or unsupported members.
_UNPACK_ERRORS = (zipfile.BadZipFile, zlib.error, NotImplementedError, EOFError, RuntimeError)


def _open_zip(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


def _file_entries(archive: zipfile.ZipFile) -> list[str]:
    """Entry paths in archive order, directories excluded."""
    return [info.filename for info in archive.infolist() if not info.is_dir()]


def _find_contents(entries: list[str]) -> tuple[str, str] | None:
    """Steps 1-3: root contents.xml, then any path ending in contents.xml.

    The legacy bundle path also ends in contents.xml, so step 3 is matched
    here and only distinguished by its layout label.
    """
    if CONTENTS_NAME in entries:
        return CONTENTS_NAME, "root"
    for path in entries:
        if path.endswith(CONTENTS_NAME):
            layout = "legacy-bundle" if path == LEGACY_BUNDLE_PATH else "nested-path"
            return path, layout
    return None


def _is_shard(path: str) -> bool:
    return path.endswith(SHARD_EXTENSION) and (
        path.startswith("data/") or "/data/" in path
    )


def _is_primary_shard(path: str) -> bool:
    return "=" in path and path.endswith(SHARD_EXTENSION) and not _is_shard(path)


def _payload_from_inner_zip(
    archive: zipfile.ZipFile, entry: str
) -> tuple[str, bytes] | None:
    """Unpack a shard and return its first markup or property-list entry.

    Returns None when the shard cannot be decompressed or holds no payload.
    """
    try:
        with _open_zip(archive.read(entry)) as inner:
            inner_entries = _file_entries(inner)
            logger.debug("Entries in %s: %s", entry, inner_entries)
            for path in inner_entries:
                if path.endswith(PAYLOAD_EXTENSIONS):
                    return f"{entry}/{path}", inner.read(path)
    except _UNPACK_ERRORS as e:
        logger.warning("Failed to extract %s: %s", entry, e)
    return None


def _locate_nested_bundle(
    archive: zipfile.ZipFile, entries: list[str]
) -> PrimaryDocument | None:
    """Step 4: a top-level .ofocus entry that is itself a zip archive."""
    bundle = next(
        (p for p in entries if p.endswith(BUNDLE_EXTENSION) and "/" not in p),
        None,
    )
    if bundle is None:
        return None

    logger.info("Found nested %s archive %s, extracting", BUNDLE_EXTENSION, bundle)
    try:
        with _open_zip(archive.read(bundle)) as nested:
            nested_entries = _file_entries(nested)
            logger.debug("Entries in nested archive: %s", nested_entries)
            found = _find_contents(nested_entries)
            if found is None:
                return None
            path, _ = found
            return PrimaryDocument(
                entry_path=f"{bundle}/{path}",
                layout="nested-archive",
                data=nested.read(path),
            )
    except _UNPACK_ERRORS as e:
        logger.warning("Nested archive %s could not be unpacked: %s", bundle, e)
        return None


def _locate_sharded(
    archive: zipfile.ZipFile, entries: list[str]
) -> PrimaryDocument | None:
    """Step 5: OmniFocus 4 export with data/ shards and a primary entry."""
    shards = [p for p in entries if _is_shard(p)]
    primary = next((p for p in entries if _is_primary_shard(p)), None)
    if not shards and primary is None:
        return None

    logger.info(
        "Detected sharded export: %d data shards, %s primary entry",
        len(shards),
        "one" if primary else "no",
    )

    candidates = ([primary] if primary else []) + shards[:1]
    for candidate in candidates:
        found = _payload_from_inner_zip(archive, candidate)
        if found is not None:
            path, data = found
            return PrimaryDocument(entry_path=path, layout="sharded", data=data)
    return None


def locate_primary_document(content: bytes) -> PrimaryDocument:
    """Return the authoritative payload entry from raw archive bytes.

    Raises ArchiveLayoutUnrecognizedError, carrying the archive's entry
    listing, when no layout matches.
    """
    try:
        archive = _open_zip(content)
    except zipfile.BadZipFile as e:
        raise ArchiveLayoutUnrecognizedError([], reason=f"not a zip archive ({e})") from e

    with archive:
        entries = _file_entries(archive)
        logger.debug("Entries in archive: %s", entries)

        found = _find_contents(entries)
        if found is not None:
            path, layout = found
            logger.info("Found %s at %s", CONTENTS_NAME, path)
            try:
                data = archive.read(path)
            except _UNPACK_ERRORS as e:
                raise MarkupCorruptError(f"Could not decompress {path}: {e}") from e
            return PrimaryDocument(entry_path=path, layout=layout, data=data)

        document = _locate_nested_bundle(archive, entries)
        if document is None:
            document = _locate_sharded(archive, entries)
        if document is None:
            raise ArchiveLayoutUnrecognizedError(entries)

        logger.info("Using %s payload %s", document.layout, document.entry_path)
        return document

"""
Filesystem Operations

Recursive tree operations built on async_for, plus thin async wrappers over
single-node calls. Every blocking call runs through aiofiles so the event
loop stays free; children of a directory are always handled one at a time.

Not-found is only ever swallowed in two places: rmrf on a path that does not
exist, and mkdirp on a segment it is about to create. Every other OSError
propagates unchanged.
"""

import logging
import os
import stat
from typing import List, Optional, Union

import aiofiles
import aiofiles.os

from .iteration import async_for, first_defined
from .utils.config_manager import get_config

logger = logging.getLogger(__name__)

PathType = Union[str, "os.PathLike[str]"]

BUFFER_ENCODING = "buffer"

_lstat = aiofiles.os.wrap(os.lstat)


async def rmrf(path: PathType) -> None:
    """
    Remove ``path`` and everything below it.

    A missing path is not an error. Symlinks are removed, never followed.
    """
    path = os.fspath(path)
    try:
        node = await _lstat(path)
    except FileNotFoundError:
        logger.debug(f"rmrf: {path} does not exist, nothing to remove")
        return

    if stat.S_ISDIR(node.st_mode):
        children = await aiofiles.os.listdir(path)
        await async_for(children, lambda _, child: rmrf(f"{path}/{child}"))
        await aiofiles.os.rmdir(path)
    else:
        await aiofiles.os.unlink(path)


async def mkdirp(path: PathType) -> None:
    """
    Create ``path`` and any missing parent directories.

    Segments that already exist are left alone, so calling this twice is
    fine. Only a single creator at a time is supported: the check and the
    create for each segment are separate calls.
    """
    path = os.fspath(path)
    segments = [segment for segment in path.split("/") if segment]
    prefix = "/" if path.startswith("/") else ""

    async def make_segment(_, segment: str) -> None:
        nonlocal prefix
        prefix += segment
        try:
            await aiofiles.os.stat(prefix)
        except FileNotFoundError:
            try:
                await aiofiles.os.mkdir(prefix)
            except FileExistsError:
                logger.debug(f"mkdirp: {prefix} appeared while creating it")
        prefix += "/"

    await async_for(segments, make_segment)


async def cpr(src: PathType, dst: PathType) -> None:
    """
    Copy ``src`` to ``dst``, recursing into directories.

    Destination directories are created as needed and may already exist.
    Files are streamed in chunks of ``filesystem.copy_chunk_size`` bytes;
    on a read or write failure both files are closed and the error is
    raised. A partially written destination file is left in place.
    """
    src = os.fspath(src)
    dst = os.fspath(dst)
    node = await aiofiles.os.stat(src)

    if stat.S_ISDIR(node.st_mode):
        children = await aiofiles.os.listdir(src)
        await mkdirp(dst)
        await async_for(children, lambda _, child: cpr(f"{src}/{child}", f"{dst}/{child}"))
    else:
        await _copy_file(src, dst)


async def _copy_file(src: str, dst: str) -> None:
    chunk_size = get_config().filesystem.copy_chunk_size
    async with aiofiles.open(src, "rb") as reader, aiofiles.open(dst, "wb") as writer:
        while True:
            chunk = await reader.read(chunk_size)
            if not chunk:
                break
            await writer.write(chunk)


async def mv(src: PathType, dst: PathType) -> None:
    """Rename ``src`` to ``dst``."""
    await aiofiles.os.rename(src, dst)


async def readdir(
    path: PathType,
    recursive: bool = False,
    encoding: Optional[str] = None,
) -> List[Union[str, bytes]]:
    """
    List the entries of a directory in filesystem order.

    Args:
        path: Directory to list
        recursive: Also list subdirectories. Their contents are appended,
            as ``"<subdir>/<entry>"``, after everything found so far; the
            subdirectory itself stays in the result as a bare name.
        encoding: Encoding of the returned names; defaults to
            ``filesystem.default_encoding``. ``"buffer"`` returns raw bytes.

    Returns:
        List of entry names (or relative paths when recursive)
    """
    encoding = first_defined(encoding, get_config().filesystem.default_encoding)
    entries = await _list_raw(os.fsencode(path), recursive)
    if encoding == BUFFER_ENCODING:
        return entries
    return [entry.decode(encoding, "surrogateescape") for entry in entries]


async def _list_raw(directory: bytes, recursive: bool) -> List[bytes]:
    entries = list(await aiofiles.os.listdir(directory))
    if not recursive:
        return entries

    async def descend(_, entry: bytes) -> None:
        child = directory + b"/" + entry
        if stat.S_ISDIR((await aiofiles.os.stat(child)).st_mode):
            nested = await _list_raw(child, True)
            entries.extend(entry + b"/" + name for name in nested)

    # async_for snapshots its input, so appending while walking is safe
    await async_for(entries, descend)
    return entries


async def filter_by_extension(path: PathType, ext: str, recursive: bool = False) -> List[str]:
    """
    Return ``"<path>/<entry>"`` for every entry whose extension is ``ext``.

    The comparison is exact and case-sensitive; ``ext`` includes the dot.
    """
    root = os.fspath(path)
    entries = await readdir(root, recursive=recursive)
    return [f"{root}/{entry}" for entry in entries if os.path.splitext(entry)[1] == ext]


async def read_file(path: PathType, encoding: Optional[str] = None) -> Union[str, bytes]:
    """Read a whole file; bytes unless an ``encoding`` is given."""
    if encoding is None:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    async with aiofiles.open(path, "r", encoding=encoding) as f:
        return await f.read()


async def write_file(
    path: PathType,
    contents: Union[str, bytes],
    encoding: str = "utf-8",
    append: bool = False,
) -> None:
    """Write ``contents`` to ``path``, truncating it unless ``append``."""
    if isinstance(contents, str):
        contents = contents.encode(encoding)
    async with aiofiles.open(path, "ab" if append else "wb") as f:
        await f.write(contents)

"""存储根目录内的安全路径解析与读写。

会话存储的每一次读写都必须经过 resolve_within，
这是防止通过构造会话 ID 进行路径穿越的唯一防线。
"""

import os
from pathlib import Path
from typing import Union
from uuid import uuid4

from plex_core.domain.exceptions import PathViolationError

PathLike = Union[str, Path]

DIR_PERM = 0o700
FILE_PERM = 0o600


def resolve_within(base: PathLike, candidate: PathLike) -> Path:
    """把 candidate 解析为绝对路径，并确认它等于 base 或位于 base 之下。

    相对路径相对于 base 解析。比较按路径分段进行，
    因此 ``/a/bx`` 不会被当作 ``/a/b`` 的子路径。
    """

    root = Path(base).expanduser().resolve()
    path = Path(candidate).expanduser()
    if not path.is_absolute():
        path = root / path
    resolved = path.resolve()
    if resolved != root and not _is_within_root(resolved, root):
        raise PathViolationError(
            code="UNSAFE_PATH",
            message=f"unsafe file path: {candidate}",
            path=str(candidate),
        )
    return resolved


def _is_within_root(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def safe_read_bytes(base: PathLike, path: PathLike) -> bytes:
    return resolve_within(base, path).read_bytes()


def safe_write_bytes(base: PathLike, path: PathLike, data: bytes, perm: int = FILE_PERM) -> Path:
    """整文件替换写入：先写临时文件，再 os.replace。"""

    target = resolve_within(base, path)
    tmp = resolve_within(base, target.parent / f".{target.name}.{uuid4().hex}.tmp")
    try:
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, perm)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return target

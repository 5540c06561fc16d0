import re
from pathlib import Path
from typing import Optional, Union

from core import Request

EXPORT_EXTENSIONS = {"markdown": "md", "json": "json", "html": "html"}


def resolve_task_file_path(file_path: Union[str, Path], base_dir: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the store path: absolute paths as-is, relative ones against base_dir or cwd."""
    candidate = Path(file_path).expanduser()
    if candidate.is_absolute():
        return candidate.resolve()
    base = Path(base_dir).expanduser() if base_dir else Path.cwd()
    return (base / candidate).resolve()


def default_archive_path(task_file: Path) -> Path:
    """tasks.yaml -> tasks-archive.yaml in the same directory."""
    return task_file.with_name(f"{task_file.stem}-archive{task_file.suffix}")


def generate_safe_filename(text: str) -> str:
    value = (text or "").lower()
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"-+", "-", value)
    value = value.strip("-")
    return value[:50]


def resolve_export_path(
    request: Request,
    output_path: Optional[str] = None,
    filename: Optional[str] = None,
    fmt: str = "markdown",
    base_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Pick the export target.

    - no output_path: ``<base>/<filename or default>``
    - existing directory or trailing separator: join with the filename
    - path with an extension: used as-is
    - anything else is treated as a directory
    """
    ext = EXPORT_EXTENSIONS.get(fmt)
    if ext is None:
        raise ValueError(f"Unsupported format: {fmt}")
    default_name = f"{generate_safe_filename(request.original_request) or 'request'}_tasks.{ext}"
    name = filename or default_name
    base = Path(base_dir).expanduser() if base_dir else Path.cwd()

    if not output_path:
        return (base / name).resolve()

    target = Path(output_path).expanduser()
    if not target.is_absolute():
        target = base / target
    target = target.resolve()

    if target.is_dir() or output_path.endswith(("/", "\\")):
        return target / name
    if target.suffix:
        return target
    return target / name


__all__ = [
    "EXPORT_EXTENSIONS",
    "default_archive_path",
    "generate_safe_filename",
    "resolve_export_path",
    "resolve_task_file_path",
]

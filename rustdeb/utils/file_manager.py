import os
import tarfile
import contextlib
from ..cli_logger import logger

# -------------------- Helpers: safe paths & archiving --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise IOError(f"Unsafe path detected: {final}")
    return final

def _normalized(tarinfo):
    """Strip ownership and timestamps so the archive is reproducible."""
    tarinfo.uid = tarinfo.gid = 0
    tarinfo.uname = tarinfo.gname = "root"
    tarinfo.mtime = 0
    if tarinfo.isfile():
        tarinfo.mode = 0o755 if tarinfo.mode & 0o111 else 0o644
    elif tarinfo.isdir():
        tarinfo.mode = 0o755
    return tarinfo

def list_tree(source_dir):
    """Relative paths of every directory and file below source_dir, sorted."""
    entries = []
    for dirpath, dirnames, filenames in os.walk(source_dir):
        dirnames.sort()
        rel_dir = os.path.relpath(dirpath, source_dir)
        for name in dirnames + sorted(filenames):
            entries.append(os.path.normpath(os.path.join(rel_dir, name)))
    return sorted(entries)

def create_tar_xz(source_dir, archive_path, arcname, log_each=False):
    """Archive source_dir as arcname/ into a deterministic .tar.xz.

    The archive is written to a temporary file and renamed into place, so a
    partial archive never appears under archive_path.
    """
    entries = list_tree(source_dir)
    os.makedirs(os.path.dirname(os.path.abspath(archive_path)), exist_ok=True)
    temp_path = archive_path + ".tmp"

    try:
        with tarfile.open(temp_path, "w:xz") as tar:
            tar.add(source_dir, arcname=arcname, recursive=False, filter=_normalized)
            for rel_path in logger.progress(entries, description=f"Archiving {arcname}"):
                full_path = _safe_join(source_dir, rel_path)
                member_name = f"{arcname}/{rel_path.replace(os.sep, '/')}"
                if log_each:
                    logger.step_info(f"adding: {member_name}", indent=2)
                tar.add(full_path, arcname=member_name, recursive=False, filter=_normalized)
        os.replace(temp_path, archive_path)
    except (tarfile.TarError, IOError):
        with contextlib.suppress(OSError):
            if os.path.exists(temp_path):
                os.remove(temp_path)
        raise

    logger.step_info(f"Archive:  {os.path.basename(archive_path)}")
    return archive_path

def list_archive(archive_path):
    """Member names of an archive, in archive order."""
    with tarfile.open(archive_path, "r:*") as tar:
        return tar.getnames()

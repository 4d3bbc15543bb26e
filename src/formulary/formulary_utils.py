"""
This file contains various utility functions like downloading archives, hashing content and extracting archives.
"""

import hashlib
import io
import logging
import os
import pathlib
import shutil
import stat
import tarfile
import zipfile
import zlib
from typing import List, Optional

import requests

from formulary.formulary_config import FormularyConfig
from formulary.formulary_exceptions import FetchError, InstallError
from formulary.formulary_logger import FormularyLogger

TAR_MODES = {
    "tar.gz": "r:gz",
    "tgz": "r:gz",
    "tar": "r:",
}


class FileUtils:
    """
    Utility functions for downloading, hashing and extracting archives
    """

    @staticmethod
    def download_bytes(
        logger: FormularyLogger,
        url: str,
        config: FormularyConfig,
        session: Optional[requests.Session] = None,
    ) -> bytes:
        """
        Downloads the content at the given URL and returns it.
        Raises FetchError on network failure, timeout or a non-2xx status.
        """
        get = session.get if session is not None else requests.get
        logger.log(f"Downloading from {url}", logging.INFO)
        try:
            response = get(
                url,
                stream=True,
                timeout=config.fetch_timeout,
                headers={"User-Agent": config.user_agent},
                verify=config.verify_tls,
            )
        except requests.Timeout as e:
            raise FetchError(f"Timed out fetching {url}", url) from e
        except requests.RequestException as e:
            raise FetchError(f"Error fetching {url}: {e}", url) from e

        with response:
            if not 200 <= response.status_code < 300:
                raise FetchError(
                    f"Error fetching {url}: HTTP {response.status_code}",
                    url,
                    status_code=response.status_code,
                )
            chunks = []
            try:
                for chunk in response.iter_content(chunk_size=config.chunk_size):
                    if chunk:
                        chunks.append(chunk)
            except requests.RequestException as e:
                raise FetchError(f"Error reading response from {url}: {e}", url) from e

        data = b"".join(chunks)
        logger.log(f"Downloaded {len(data)} bytes from {url}", logging.INFO)
        return data

    @staticmethod
    def sha256_hexdigest(data: bytes) -> str:
        """
        Returns the lower-case hex SHA-256 digest of data
        """
        return hashlib.sha256(data).hexdigest()

    @staticmethod
    def extract_archive(logger: FormularyLogger, data: bytes, archive_type: str, target_dir: str) -> None:
        """
        Extracts the archive content into target_dir.
        Members with absolute paths or paths escaping target_dir are rejected with InstallError.
        """
        logger.log(f"Extracting {archive_type} archive into {target_dir}", logging.INFO)
        if archive_type in TAR_MODES:
            FileUtils._extract_tar(data, TAR_MODES[archive_type], target_dir)
        elif archive_type == "zip":
            FileUtils._extract_zip(data, target_dir)
        else:
            raise InstallError(f"Unsupported archive type: {archive_type}")

    @staticmethod
    def _check_member_path(name: str, target_dir: str) -> None:
        if name.startswith(("/", os.sep)):
            raise InstallError(f"Archive member has an absolute path: {name}", path=name)
        root = os.path.realpath(target_dir)
        member_path = os.path.realpath(os.path.join(root, name))
        if os.path.commonpath([member_path, root]) != root:
            raise InstallError(f"Archive member escapes the extraction directory: {name}", path=name)

    @staticmethod
    def _extract_tar(data: bytes, mode: str, target_dir: str) -> None:
        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode=mode) as tar:
                members = []
                for member in tar.getmembers():
                    FileUtils._check_member_path(member.name, target_dir)
                    if member.issym() or member.islnk():
                        link_base = os.path.dirname(member.name) if member.issym() else ""
                        FileUtils._check_member_path(os.path.join(link_base, member.linkname), target_dir)
                    elif not (member.isfile() or member.isdir()):
                        continue
                    members.append(member)
                if hasattr(tarfile, "data_filter"):
                    tar.extractall(target_dir, members=members, filter="data")
                else:
                    tar.extractall(target_dir, members=members)
        except (tarfile.TarError, EOFError, zlib.error) as e:
            raise InstallError(f"Failed to extract tar archive: {e}") from e
        except OSError as e:
            raise InstallError(f"Failed to write extracted files: {e}", path=target_dir) from e

    @staticmethod
    def _extract_zip(data: bytes, target_dir: str) -> None:
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zip_ref:
                for info in zip_ref.infolist():
                    FileUtils._check_member_path(info.filename, target_dir)
                for info in zip_ref.infolist():
                    extracted = zip_ref.extract(info, target_dir)
                    # zipfile does not restore unix permissions
                    mode = (info.external_attr >> 16) & 0o777
                    if mode and not info.is_dir():
                        os.chmod(extracted, (mode & 0o755) | stat.S_IRUSR | stat.S_IWUSR)
        except (zipfile.BadZipFile, EOFError, zlib.error) as e:
            raise InstallError(f"Failed to extract zip archive: {e}") from e
        except OSError as e:
            raise InstallError(f"Failed to write extracted files: {e}", path=target_dir) from e

    @staticmethod
    def locate_source(extracted_root: pathlib.Path, source: str) -> pathlib.Path:
        """
        Returns the path of source inside the extracted archive.
        When the archive holds a single top-level directory, source is also looked up inside it.
        Raises InstallError if no regular file is found.
        """
        candidates = [extracted_root / source]
        entries = list(extracted_root.iterdir())
        if len(entries) == 1 and entries[0].is_dir():
            candidates.append(entries[0] / source)

        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()

        raise InstallError(f"{source} not found in archive", path=source)

    @staticmethod
    def copy_preserving_mode(source: pathlib.Path, destination: pathlib.Path) -> None:
        """
        Copies source to destination through a temporary sibling that is renamed into place.
        Permission bits of source (executable bits included) are kept, limited to 0o755.
        """
        tmp = destination.with_name(f".{destination.name}.part")
        try:
            shutil.copyfile(source, tmp)
            mode = stat.S_IMODE(source.stat().st_mode) & 0o755
            os.chmod(tmp, mode | stat.S_IRUSR | stat.S_IWUSR)
            os.replace(tmp, destination)
        except OSError:
            if tmp.exists():
                tmp.unlink()
            raise

    @staticmethod
    def remove_files(logger: FormularyLogger, paths: List[pathlib.Path]) -> None:
        """
        Removes the given files, logging the ones that cannot be removed
        """
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.log(f"Could not remove {path}: {e}", logging.WARNING)

    @staticmethod
    def missing_directories(path: pathlib.Path) -> List[pathlib.Path]:
        """
        Returns path and those of its parents that do not exist yet, deepest first
        """
        missing = []
        while not path.exists() and path.parent != path:
            missing.append(path)
            path = path.parent
        return missing

    @staticmethod
    def remove_empty_directories(logger: FormularyLogger, paths: List[pathlib.Path]) -> None:
        """
        Removes the given directories, deepest first, leaving the ones that are not empty
        """
        for path in sorted(set(paths), key=lambda p: len(p.parts), reverse=True):
            if not path.is_dir():
                continue
            try:
                path.rmdir()
            except OSError as e:
                logger.log(f"Leaving directory {path}: {e}", logging.DEBUG)

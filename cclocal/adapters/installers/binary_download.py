"""
Binary-download strategy — fetch a release artifact directly.

Downloads into a temporary working directory, optionally verifies a
sha256 from the release manifest, then either unpacks a tarball or
places a raw executable into the user-writable install directory.
No elevated privileges are required.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
import tempfile
from pathlib import Path

from cclocal.adapters.installers.base import InstallStrategy
from cclocal.adapters.installers.download import (
    DownloadError,
    download_file,
    fetch_json,
    fetch_text,
    verify_checksum,
)
from cclocal.core.data.tools import DownloadSpec, ToolSpec
from cclocal.core.models.host import HostPlatform
from cclocal.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

_SUPPORTED_ARCHES = ("amd64", "arm64")


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class BinaryDownloadStrategy(InstallStrategy):
    """Download, extract, place into ``install_dir``."""

    @property
    def name(self) -> str:
        return "binary-download"

    def is_available(self, spec: ToolSpec, host: HostPlatform) -> bool:
        return host.os in spec.downloads and host.arch in _SUPPORTED_ARCHES

    def _substitutions(self, spec: ToolSpec, host: HostPlatform) -> dict[str, str]:
        return {
            "os": spec.os_map.get(host.os, host.os),
            "arch": spec.arch_map.get(host.arch, host.arch),
        }

    @staticmethod
    def _render(template: str, values: dict[str, str]) -> str:
        result = template
        for key, value in values.items():
            result = result.replace(f"{{{key}}}", value)
        return result

    def install(self, spec: ToolSpec, host: HostPlatform, install_dir: Path) -> Receipt:
        dl = spec.downloads[host.os]
        values = self._substitutions(spec, host)

        with tempfile.TemporaryDirectory(prefix=f"ccl-{spec.name}-") as tmp:
            workdir = Path(tmp)
            try:
                if dl.version_url:
                    values["version"] = fetch_text(dl.version_url)
                url = self._render(dl.url, values)
                artifact = download_file(url, workdir / Path(url).name)
                if dl.manifest_url:
                    self._check_manifest(dl, values, artifact)
            except DownloadError as e:
                return self._fail(spec, str(e), "DownloadFailed")

            if dl.archive:
                return self._install_archive(spec, dl, artifact, install_dir)
            return self._install_raw(spec, dl, artifact, install_dir)

    def _check_manifest(self, dl: DownloadSpec, values: dict[str, str], artifact: Path) -> None:
        manifest = fetch_json(self._render(dl.manifest_url, values))
        platform_key = f"{values['os']}-{values['arch']}"
        expected = manifest.get("platforms", {}).get(platform_key, {}).get("checksum")
        if not expected:
            raise DownloadError(f"No checksum for {platform_key} in release manifest")
        try:
            matches = verify_checksum(artifact, expected)
        except OSError as e:
            raise DownloadError(f"Could not read {artifact.name}: {e}") from e
        if not matches:
            raise DownloadError(f"Checksum mismatch for {artifact.name}")

    def _install_archive(
        self, spec: ToolSpec, dl: DownloadSpec, artifact: Path, install_dir: Path,
    ) -> Receipt:
        try:
            with tarfile.open(artifact) as tar:
                if dl.extract_all:
                    # Archive carries its own bin/ + lib/ layout
                    root = install_dir.parent
                    tar.extractall(root, filter="data")
                    placed = root / dl.member
                else:
                    member = tar.getmember(dl.member)
                    source = tar.extractfile(member)
                    if source is None:
                        raise KeyError(dl.member)
                    install_dir.mkdir(parents=True, exist_ok=True)
                    placed = install_dir / spec.cli
                    with source, open(placed, "wb") as f:
                        shutil.copyfileobj(source, f)
        except (tarfile.TarError, KeyError, OSError) as e:
            return self._fail(spec, f"Could not extract {artifact.name}: {e}", "ExtractFailed")

        try:
            if placed.parent != install_dir:
                self._link_into(placed, install_dir / spec.cli)
            _make_executable(placed)
        except OSError as e:
            return self._fail(spec, f"Could not link {spec.cli} into {install_dir}: {e}", "PermissionDenied")
        return Receipt.success(
            strategy=self.name,
            target=spec.name,
            output=f"Placed {spec.label} at {placed}",
            metadata={"path": str(placed)},
        )

    def _link_into(self, placed: Path, link: Path) -> None:
        link.parent.mkdir(parents=True, exist_ok=True)
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(placed)

    def _install_raw(
        self, spec: ToolSpec, dl: DownloadSpec, artifact: Path, install_dir: Path,
    ) -> Receipt:
        try:
            _make_executable(artifact)
        except OSError as e:
            return self._fail(spec, f"Could not mark {artifact.name} executable: {e}", "PermissionDenied")

        if dl.post_install:
            # The binary installs itself (e.g. `claude install latest`)
            cmd = [str(artifact) if a == "{binary}" else a for a in dl.post_install]
            r = self._runner.run(cmd, timeout=None, stream=True)
            if not r.ok:
                return self._fail(
                    spec,
                    f"{spec.cli} self-install failed: {r.error}",
                    "StrategyFailed",
                    return_code=r.return_code,
                )
            return Receipt.success(strategy=self.name, target=spec.name, output=f"{spec.label} self-installed")

        try:
            install_dir.mkdir(parents=True, exist_ok=True)
            dest = install_dir / spec.cli
            shutil.move(str(artifact), dest)
            os.chmod(dest, dest.stat().st_mode | stat.S_IXUSR)
        except OSError as e:
            return self._fail(spec, f"Could not place {spec.cli} in {install_dir}: {e}", "PermissionDenied")
        return Receipt.success(
            strategy=self.name,
            target=spec.name,
            output=f"Placed {spec.label} at {dest}",
            metadata={"path": str(dest)},
        )

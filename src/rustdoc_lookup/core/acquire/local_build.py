"""Build rustdoc JSON for local workspace members."""

import hashlib
import os
import shutil
import subprocess
import tempfile
from pathlib import Path

from loguru import logger

from rustdoc_lookup.config import CARGO_BIN, RUSTDOC_TOOLCHAIN
from rustdoc_lookup.errors import BuildFailed, ToolchainMissing
from rustdoc_lookup.models.query import LocalTarget, normalize_crate_name

_SKIP_DIRS = frozenset({"target"})

_INSTALL_CARGO = "Install Rust with rustup: https://rustup.rs"
_INSTALL_NIGHTLY = "rustdoc JSON needs a nightly toolchain: rustup toolchain install nightly"

# stderr fragments meaning the toolchain, not the crate, is the problem.
_NIGHTLY_MISSING_MARKERS = (
    "toolchain 'nightly",
    "is not installed",
    "only accepted on the nightly compiler",
    "no such command: `+nightly`",
)

_DIAGNOSTIC_TAIL = 40


def fingerprint_tree(root: Path) -> str:
    """Hash a source tree: relative paths and contents, in sorted order.

    ``target/`` and hidden directories are skipped so build output and VCS
    metadata do not change the fingerprint. A dangling symlink contributes
    its link text.

    Raises:
        BuildFailed: A file in the tree cannot be read.
    """
    digest = hashlib.sha256()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS and not d.startswith("."))
        for fname in sorted(filenames):
            if fname.startswith("."):
                continue
            path = Path(dirpath) / fname
            digest.update(path.relative_to(root).as_posix().encode("utf-8"))
            digest.update(b"\0")
            try:
                if path.is_symlink() and not path.exists():
                    digest.update(os.readlink(path).encode("utf-8"))
                else:
                    digest.update(path.read_bytes())
            except OSError as e:
                msg = f"Could not read {path} while fingerprinting {root}"
                raise BuildFailed(msg, diagnostics=str(e)) from e
            digest.update(b"\0")
    return digest.hexdigest()


class LocalBuilder:
    """Run ``cargo rustdoc`` for a workspace member, skipping unchanged trees."""

    def __init__(self, *, timeout: float | None = None, target_dir: Path | None = None) -> None:
        self.timeout = timeout
        self.target_dir = target_dir

    def fingerprint(self, target: LocalTarget) -> str:
        return fingerprint_tree(target.path)

    def _target_dir(self, target: LocalTarget) -> Path:
        return self.target_dir or target.path / "target"

    def artifact_path(self, target: LocalTarget) -> Path:
        return self._target_dir(target) / "doc" / f"{normalize_crate_name(target.package)}.json"

    def _record_path(self, target: LocalTarget) -> Path:
        name = normalize_crate_name(target.package)
        return self._target_dir(target) / "doc" / ".rustdoc-lookup" / f"{name}.fingerprint"

    def build(self, target: LocalTarget) -> bytes:
        """Return rustdoc JSON for the member, building only if sources changed.

        Raises:
            ToolchainMissing: cargo or the nightly toolchain is unavailable.
            BuildFailed: The build exited non-zero, timed out, or produced no artifact.
        """
        fingerprint = self.fingerprint(target)
        artifact = self.artifact_path(target)
        record = self._record_path(target)

        try:
            last = record.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            last = None
        if last == fingerprint and artifact.is_file():
            logger.debug("Sources of {} unchanged, reusing {}", target.package, artifact)
            return artifact.read_bytes()

        self._run_cargo(target)

        if not artifact.is_file():
            msg = f"Build of {target.package} succeeded but {artifact} was not produced"
            raise BuildFailed(msg)
        data = artifact.read_bytes()
        _write_atomic(record, fingerprint + "\n")
        return data

    def _run_cargo(self, target: LocalTarget) -> None:
        if shutil.which(CARGO_BIN) is None:
            msg = f"{CARGO_BIN!r} was not found on PATH"
            raise ToolchainMissing(msg, guidance=_INSTALL_CARGO)

        cmd = [
            CARGO_BIN,
            RUSTDOC_TOOLCHAIN,
            "rustdoc",
            "-p",
            target.package,
            "--target-dir",
            str(self._target_dir(target)),
            "--",
            "-Z",
            "unstable-options",
            "--output-format",
            "json",
        ]
        logger.info("Building documentation for {} in {}", target.package, target.path)
        logger.debug("Running: {}", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                cwd=target.path,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            msg = f"Could not run {CARGO_BIN!r}"
            raise ToolchainMissing(msg, guidance=_INSTALL_CARGO) from e
        except subprocess.TimeoutExpired as e:
            msg = f"Build of {target.package} timed out after {self.timeout}s"
            raise BuildFailed(msg) from e

        if proc.returncode == 0:
            return
        stderr = proc.stderr or ""
        if any(marker in stderr for marker in _NIGHTLY_MISSING_MARKERS):
            msg = "The nightly Rust toolchain is not available"
            raise ToolchainMissing(msg, guidance=_INSTALL_NIGHTLY)
        tail = "\n".join(stderr.strip().splitlines()[-_DIAGNOSTIC_TAIL:])
        msg = f"Build of {target.package} failed with exit code {proc.returncode}"
        raise BuildFailed(msg, diagnostics=tail)


def _write_atomic(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(contents)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

"""
ghostscript.py - PDF recompression through an external Ghostscript process.

Pipeline:
1. Locate gs (bundled copy, common install paths, then PATH)
2. Create an isolated workspace and copy the source in as input.pdf
3. Locate Ghostscript's Resource/Init, fonts and ICC profiles if possible
4. Run pdfwrite with the quality preset, capturing stdout/stderr
5. Write ghostscript.log, copy output.pdf to the destination

The workspace is removed after a successful run. After a failure only the
log is kept, so the path reported in EngineFailed can still be opened.
"""

import logging
import os
import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .exceptions import EngineFailed, EngineNotFound
from .models import CompressionQuality
from .utils import PathLike, remove_partial, require_input, require_new_output

logger = logging.getLogger(__name__)

if sys.platform == "win32":
    GS_EXECUTABLE_NAMES = ("gswin64c.exe", "gswin32c.exe", "gs.exe")
else:
    GS_EXECUTABLE_NAMES = ("gs",)

COMMON_INSTALL_PATHS = (
    "/opt/homebrew/bin/gs",
    "/usr/local/bin/gs",
    "/usr/bin/gs",
)

COMMON_SHARE_DIRS = (
    "/opt/homebrew/share/ghostscript",
    "/usr/local/share/ghostscript",
    "/usr/share/ghostscript",
)

WORKSPACE_PREFIX = "pdf-imaging-gs-"
INPUT_NAME = "input.pdf"
OUTPUT_NAME = "output.pdf"
LOG_NAME = "ghostscript.log"

BUNDLE_ENV_VAR = "PDF_IMAGING_BUNDLE_DIR"


def bundle_root() -> Path:
    """Root of bundled resources: env override, frozen app, or this package."""
    override = os.environ.get(BUNDLE_ENV_VAR)
    if override:
        return Path(override)
    try:
        return Path(sys._MEIPASS)
    except AttributeError:
        return Path(__file__).parent


def is_executable(path: PathLike) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


@dataclass(frozen=True)
class GhostscriptResources:
    """Resource directories handed to gs via -I and environment variables."""
    library_paths: tuple
    font_path: Optional[str] = None
    icc_path: Optional[str] = None

    @property
    def library_path_list(self) -> str:
        return os.pathsep.join(self.library_paths)


def _version_key(name: str) -> List[int]:
    """10.03.0 -> [10, 3, 0]; non-numeric parts sort first."""
    return [int(part) if part.isdigit() else -1 for part in name.split(".")]


def resources_from_root(root: Path) -> Optional[GhostscriptResources]:
    """
    Read a Ghostscript resource tree.

    Accepts either a flat layout (root/Resource/Init, root/lib) as shipped in
    bundles, or version subdirectories (root/10.03.0/Resource/Init) as
    installed by package managers. Newest version directory wins.
    """
    root = Path(root)
    if not root.is_dir():
        return None

    resource_dir = root / "Resource"
    if resource_dir.is_dir():
        paths = []
        if (resource_dir / "Init").is_dir():
            paths.append(str(resource_dir / "Init"))
        paths.append(str(resource_dir))
        if (root / "lib").is_dir():
            paths.append(str(root / "lib"))

        font_path = None
        if (resource_dir / "Font").is_dir():
            font_path = str(resource_dir / "Font")
        elif (root / "fonts").is_dir():
            font_path = str(root / "fonts")
        icc_dir = root / "iccprofiles"

        return GhostscriptResources(
            library_paths=tuple(paths),
            font_path=font_path,
            icc_path=str(icc_dir) if icc_dir.is_dir() else None,
        )

    try:
        version_dirs = sorted(
            (d for d in root.iterdir() if d.is_dir() and not d.name.startswith(".")),
            key=lambda d: _version_key(d.name),
            reverse=True,
        )
    except OSError as e:
        logger.debug(f"Cannot list {root}: {e}")
        return None

    for version_dir in version_dirs:
        resource_dir = version_dir / "Resource"
        paths = [
            str(p) for p in (resource_dir / "Init", resource_dir, version_dir / "lib")
            if p.is_dir()
        ]
        if not paths:
            continue

        font_dir = resource_dir / "Font"
        icc_dir = version_dir / "iccprofiles"
        return GhostscriptResources(
            library_paths=tuple(paths),
            font_path=str(font_dir) if font_dir.is_dir() else None,
            icc_path=str(icc_dir) if icc_dir.is_dir() else None,
        )

    return None


class Workspace:
    """
    Temporary directory for one gs run.

    On a clean exit the directory is removed. On an exception the input and
    output copies are removed and the log is left behind for diagnosis.
    Removal errors are ignored.
    """

    def __init__(self, prefix: str = WORKSPACE_PREFIX):
        self.prefix = prefix
        self.path: Optional[Path] = None

    @property
    def input_path(self) -> Path:
        return self.path / INPUT_NAME

    @property
    def output_path(self) -> Path:
        return self.path / OUTPUT_NAME

    @property
    def log_path(self) -> Path:
        return self.path / LOG_NAME

    def __enter__(self) -> "Workspace":
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix))
        logger.debug(f"Created workspace {self.path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None or not self.log_path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
            logger.debug(f"Removed workspace {self.path}")
        else:
            for leftover in (self.input_path, self.output_path):
                remove_partial(leftover)
            logger.debug(f"Kept log {self.log_path}")
        return False

    def write_log(self, text: str):
        try:
            self.log_path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write {self.log_path}: {e}")


ResourceStrategy = Callable[[Path], Optional[GhostscriptResources]]


class GhostscriptEngine:
    """
    Locates and runs Ghostscript.

    Search locations are constructor arguments so lookups can be pointed at
    a fake filesystem.
    """

    def __init__(
        self,
        bundle_dir: Optional[PathLike] = None,
        install_paths: Sequence[PathLike] = COMMON_INSTALL_PATHS,
        search_path: Optional[str] = None,
        share_dirs: Sequence[PathLike] = COMMON_SHARE_DIRS,
        executable_names: Sequence[str] = GS_EXECUTABLE_NAMES,
    ):
        self.bundle_dir = Path(bundle_dir) if bundle_dir is not None else bundle_root()
        self.install_paths = [Path(p) for p in install_paths]
        self.search_path = search_path
        self.share_dirs = [Path(p) for p in share_dirs]
        self.executable_names = tuple(executable_names)

    # Executable lookup

    def find_executable(self) -> Optional[Path]:
        """First executable gs from the bundle, install paths, then PATH."""
        candidates: List[Path] = [self.bundle_dir / "bin" / name for name in self.executable_names]
        candidates += self.install_paths

        search_path = self.search_path
        if search_path is None:
            search_path = os.environ.get("PATH", "")
        for entry in search_path.split(os.pathsep):
            if entry:
                candidates += [Path(entry) / name for name in self.executable_names]

        for candidate in candidates:
            if is_executable(candidate):
                logger.debug(f"Using Ghostscript at {candidate}")
                return candidate
        return None

    # Resource lookup, first hit wins

    @property
    def resource_strategies(self) -> List[ResourceStrategy]:
        return [
            self._bundled_resources,
            self._derived_resources,
            self._common_resources,
        ]

    def _bundled_resources(self, executable: Path) -> Optional[GhostscriptResources]:
        return resources_from_root(self.bundle_dir / "ghostscript")

    def _derived_resources(self, executable: Path) -> Optional[GhostscriptResources]:
        # /opt/homebrew/bin/gs -> /opt/homebrew/share/ghostscript
        prefix = Path(executable).parent.parent
        return resources_from_root(prefix / "share" / "ghostscript")

    def _common_resources(self, executable: Path) -> Optional[GhostscriptResources]:
        for share_dir in self.share_dirs:
            found = resources_from_root(share_dir)
            if found:
                return found
        return None

    def find_resources(self, executable: Path) -> Optional[GhostscriptResources]:
        for strategy in self.resource_strategies:
            found = strategy(executable)
            if found:
                logger.debug(f"Ghostscript resources: {found.library_path_list}")
                return found
        logger.warning("Ghostscript resources not found; running with built-in defaults")
        return None

    # Invocation

    def build_command(
        self,
        executable: Path,
        quality: CompressionQuality,
        resources: Optional[GhostscriptResources] = None,
    ) -> List[str]:
        cmd = [str(executable)]
        if resources:
            cmd += ["-I", resources.library_path_list]
        cmd += [
            "-sDEVICE=pdfwrite",
            "-dCompatibilityLevel=1.7",
            f"-dPDFSETTINGS={quality.ghostscript_setting}",
            "-dNOPAUSE",
            "-dBATCH",
            "-dSAFER",
            "-dPDFSTOPONERROR",
            "-dVerbose",
            "-dDetectDuplicateImages=true",
            "-dCompressFonts=true",
            f"-sOutputFile={OUTPUT_NAME}",
            INPUT_NAME,
        ]
        return cmd

    def build_env(
        self,
        resources: Optional[GhostscriptResources],
        workspace: Path,
    ) -> Optional[Dict[str, str]]:
        """Environment for gs, or None to inherit ours unchanged."""
        if not resources:
            return None
        env = dict(os.environ)
        env["GS_LIB"] = resources.library_path_list
        if resources.font_path:
            env["GS_FONTPATH"] = resources.font_path
        if resources.icc_path:
            env["GS_ICC_PROFILE_DIR"] = resources.icc_path
        env["TMPDIR"] = str(workspace)
        return env

    def optimize(
        self,
        pdf_path: PathLike,
        output_path: PathLike,
        quality: CompressionQuality = CompressionQuality.EBOOK,
    ):
        """
        Recompress pdf_path into output_path with Ghostscript.

        Raises:
            FileNotFound, OutputDirectoryNotFound, OutputFileExists,
            EngineNotFound, EngineFailed
        """
        pdf_path = require_input(pdf_path)
        output_path = require_new_output(output_path)

        executable = self.find_executable()
        if executable is None:
            raise EngineNotFound()

        with Workspace() as ws:
            try:
                shutil.copyfile(pdf_path, ws.input_path)
            except OSError as e:
                raise EngineFailed(f"cannot prepare workspace: {e}") from e

            resources = self.find_resources(executable)
            cmd = self.build_command(executable, quality, resources)
            env = self.build_env(resources, ws.path)

            logger.info(f"Running Ghostscript ({quality.value}) on {pdf_path.name}")
            logger.debug(f"Executing command: {' '.join(cmd)}")

            try:
                result = subprocess.run(
                    cmd,
                    cwd=ws.path,
                    env=env,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    errors="replace",
                )
            except OSError as e:
                ws.write_log(f"Ghostscript could not be started.\n{e}\n")
                raise EngineFailed(f"{e} (log: {ws.log_path})", ws.log_path) from e

            stdout = result.stdout or ""
            stderr = result.stderr or ""
            combined = " | ".join(
                text.strip() for text in (stderr, stdout) if text.strip()
            )
            log_text = "\n".join(text for text in (stderr, stdout) if text)

            if log_text:
                ws.write_log(log_text)
            else:
                reason = "exit" if result.returncode >= 0 else f"signal {-result.returncode}"
                ws.write_log(
                    "Ghostscript produced no output.\n"
                    f"exit code: {result.returncode}\n"
                    f"termination reason: {reason}\n"
                )

            logger.debug(f"Ghostscript finished with exit code {result.returncode}")

            if result.returncode != 0:
                detail = combined or f"exit code {result.returncode}"
                raise EngineFailed(f"{detail} (log: {ws.log_path})", ws.log_path)

            if not ws.output_path.exists():
                raise EngineFailed(f"no output produced (log: {ws.log_path})", ws.log_path)

            try:
                shutil.copyfile(ws.output_path, output_path)
            except OSError as e:
                remove_partial(output_path)
                raise EngineFailed(str(e), ws.log_path) from e

        logger.info(f"Saved Ghostscript output to {output_path}")


def optimize_external(
    pdf_path: PathLike,
    output_path: PathLike,
    quality: CompressionQuality = CompressionQuality.EBOOK,
    engine: Optional[GhostscriptEngine] = None,
):
    """Recompress a PDF with Ghostscript using the default search locations."""
    (engine or GhostscriptEngine()).optimize(pdf_path, output_path, quality)

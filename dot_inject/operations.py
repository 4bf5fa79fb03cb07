"""Core operations for dot-inject - file and batch processing."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from .backends import SecretStoreAdapter, get_adapter
from .cache import SecretCache
from .config import Settings
from .constants import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK
from .exceptions import (
    AmbiguousFormatError,
    DotInjectError,
    TemplateReadError,
    UnauthenticatedError,
    UnresolvedSecretsError,
)
from .files import (
    atomic_write_text,
    backup_file,
    is_binary_file,
    is_template_file,
    iter_directory_files,
    output_path_for,
    read_template,
    unified_diff,
)
from .renderer import RenderResult, RenderStatus, TemplateRenderer
from .resolver import SecretResolver
from .secrets import SecretKey, detect_formats

logger = logging.getLogger(__name__)

STDIN_LABEL = "<stdin>"


class FileStatus(Enum):
    """What happened to one input."""

    WRITTEN = "written"
    PREVIEWED = "previewed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FileReport:
    """Result of processing one template."""

    source: str
    output: Optional[Path]
    status: FileStatus
    render: Optional[RenderResult] = None
    error: Optional[DotInjectError] = None
    diff: str = ""
    rendered: Optional[str] = None
    backup: Optional[Path] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not FileStatus.FAILED

    @property
    def warnings(self) -> list[str]:
        """Unresolved tokens left in best-effort output."""
        if self.render is None or self.render.status is not RenderStatus.PARTIAL:
            return []
        return self.render.missing_names


@dataclass
class BatchSummary:
    """Aggregated results of a batch run."""

    reports: list[FileReport] = field(default_factory=list)
    interrupted: bool = False

    def add(self, report: FileReport) -> None:
        self.reports.append(report)

    def _count(self, *statuses: FileStatus) -> int:
        return sum(1 for r in self.reports if r.status in statuses)

    @property
    def processed(self) -> int:
        return self._count(FileStatus.WRITTEN, FileStatus.PREVIEWED)

    @property
    def skipped(self) -> int:
        return self._count(FileStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(FileStatus.FAILED)

    @property
    def exit_code(self) -> int:
        if self.interrupted:
            return EXIT_INTERRUPTED
        return EXIT_FAILURE if self.failed else EXIT_OK


class InjectOperations:
    """
    Renders template files with secrets from the configured store.

    One instance serves one CLI invocation: it owns the secret cache, so
    repeated tokens across files are looked up once per cache window.
    Files are processed sequentially and each file's failure is isolated.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        adapter: SecretStoreAdapter | None = None,
        cache: SecretCache | None = None,
        dry_run: bool = False,
        backup: bool = False,
        force: bool = False,
    ):
        self.settings = settings or Settings()
        self.dry_run = dry_run
        self.backup = backup
        self.force = force
        self._adapter = adapter
        self._cache = cache
        self._resolver: SecretResolver | None = None
        self._renderer: TemplateRenderer | None = None

    @property
    def adapter(self) -> SecretStoreAdapter:
        """Get the secret store adapter."""
        if self._adapter is None:
            self._adapter = get_adapter(self.settings)
        return self._adapter

    @property
    def cache(self) -> SecretCache:
        """Get the process-local secret cache."""
        if self._cache is None:
            self._cache = SecretCache(
                ttl=self.settings.cache_ttl,
                negative_ttl=self.settings.negative_ttl,
                enabled=self.settings.cache_enabled,
            )
        return self._cache

    @property
    def resolver(self) -> SecretResolver:
        if self._resolver is None:
            self._resolver = SecretResolver(self.adapter, self.cache)
        return self._resolver

    @property
    def renderer(self) -> TemplateRenderer:
        if self._renderer is None:
            self._renderer = TemplateRenderer(
                self.resolver,
                default_vault=self.settings.vault,
                default_field=self.settings.field,
            )
        return self._renderer

    @property
    def strict(self) -> bool:
        return self.settings.strict

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def ensure_ready(self) -> bool:
        """Verify the secret store is usable.

        Outside dry-run an unusable store is fatal. In dry-run the preview
        continues and every lookup is reported as missing.

        Returns:
            True if the store is authenticated.
        """
        try:
            self.adapter.ensure_authenticated()
            return True
        except UnauthenticatedError as e:
            if not self.dry_run:
                raise
            logger.warning("Continuing dry run without vault access: %s", e)
            self.resolver.tolerate_unauthenticated = True
            return False

    def warm_cache(self, names: Iterable[str] | None = None) -> int:
        """Pre-load common secrets into the cache."""
        names = self.settings.warm_secrets if names is None else names
        keys = [
            SecretKey(name=name, field=self.settings.field, vault=self.settings.vault)
            for name in names
        ]
        return self.resolver.warm(keys)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_content(self, content: str) -> RenderResult:
        """Render text; dry runs always render best-effort for the preview."""
        strict = self.strict and not self.dry_run
        return self.renderer.render(content, self.settings.template_format, strict=strict)

    def _failure_for(self, result: RenderResult) -> Optional[DotInjectError]:
        if result.status is RenderStatus.AMBIGUOUS:
            return AmbiguousFormatError(result.candidates)
        if result.status is RenderStatus.FAILED or (
            self.dry_run and self.strict and result.missing_keys
        ):
            details = [
                f"{key.name} ({self.resolver.failure_kind(key) or 'SecretNotFoundError'})"
                for key in result.missing_keys
            ]
            return UnresolvedSecretsError(
                result.missing_names,
                f"Failed to retrieve secrets: {', '.join(details)}",
            )
        return None

    def _finish(
        self,
        source: str,
        content: str,
        result: RenderResult,
        output: Optional[Path],
    ) -> FileReport:
        """Turn a render into a report, writing output unless dry-run."""
        error = self._failure_for(result)

        if self.dry_run:
            return FileReport(
                source=source,
                output=output,
                status=FileStatus.FAILED if error else FileStatus.PREVIEWED,
                render=result,
                error=error,
                diff=unified_diff(content, result.output, output or source),
                rendered=result.output,
            )

        if error is not None:
            return FileReport(source=source, output=output, status=FileStatus.FAILED,
                              render=result, error=error)

        if result.status is RenderStatus.NO_TEMPLATE and not self.force:
            return FileReport(source=source, output=output, status=FileStatus.SKIPPED,
                              render=result, message="No templates found")

        report = FileReport(source=source, output=output, status=FileStatus.WRITTEN,
                            render=result, rendered=result.output)
        if output is None:
            return report

        try:
            if self.backup:
                report.backup = backup_file(output)
            atomic_write_text(output, result.output)
        except DotInjectError as e:
            logger.error("Write failed for %s: %s", output, e)
            report.status = FileStatus.FAILED
            report.error = e
        return report

    def process_file(self, path: Path, output: Path | None = None) -> FileReport:
        """Render one template file to its output path.

        Without an explicit output, a file lacking a template suffix would be
        rendered over itself, so it is skipped unless ``force`` is set.
        """
        path = Path(path)
        explicit = output is not None
        output = Path(output) if explicit else output_path_for(path)

        if not path.exists():
            return FileReport(source=str(path), output=output, status=FileStatus.FAILED,
                              error=TemplateReadError(f"Input not found: {path}"))

        if not explicit and not is_template_file(path) and not self.force:
            logger.debug("Skipping non-template file: %s", path)
            return FileReport(source=str(path), output=output, status=FileStatus.SKIPPED,
                              message="Not a template file (use --force)")

        try:
            content = read_template(path)
        except TemplateReadError as e:
            return FileReport(source=str(path), output=output, status=FileStatus.FAILED, error=e)

        logger.info("Processing %s -> %s", path, output)
        result = self.render_content(content)
        return self._finish(str(path), content, result, output)

    def process_stdin(self, content: str, output: Path | None = None) -> FileReport:
        """Render text read from stdin; output None means the caller prints it."""
        result = self.render_content(content)
        force, self.force = self.force, True
        try:
            return self._finish(STDIN_LABEL, content, result, output)
        finally:
            self.force = force

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def _has_tokens(self, path: Path) -> bool:
        if is_binary_file(path):
            return False
        try:
            return bool(detect_formats(path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError):
            return False

    def collect_directory(self, directory: Path, recursive: bool = True) -> list[Path]:
        """Template files in a directory; with force, any file holding tokens."""
        files = []
        for path in iter_directory_files(directory, recursive):
            if is_template_file(path) or (self.force and self._has_tokens(path)):
                files.append(path)
        return files

    def process_paths(
        self,
        paths: Iterable[Path],
        summary: BatchSummary | None = None,
        on_report: Callable[[FileReport], None] | None = None,
    ) -> BatchSummary:
        """Process files in order, isolating per-file failures.

        KeyboardInterrupt stops the batch; files already written are left
        as they are, the file in progress is never partially written.
        """
        summary = summary if summary is not None else BatchSummary()
        try:
            for path in paths:
                report = self.process_file(path)
                if report.status is FileStatus.FAILED:
                    logger.error("Failed: %s: %s", path, report.error)
                summary.add(report)
                if on_report is not None:
                    on_report(report)
        except KeyboardInterrupt:
            logger.warning("Batch interrupted after %d files", len(summary.reports))
            summary.interrupted = True
        return summary

    def process_directory(self, directory: Path, recursive: bool = True) -> BatchSummary:
        """Process every template in a directory."""
        return self.process_paths(self.collect_directory(Path(directory), recursive))

"""Site engine: plans a sync and applies it."""

import logging
import time
from pathlib import Path
from typing import Optional

from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from ..api import KVClient
from ..output import OutputFormatter
from ..project import Target, site_namespace_id
from ..utils import format_size
from .manifest import ManifestStore
from .operations import SiteOperations
from .sync import SyncPlan, sync

logger = logging.getLogger(__name__)


class SiteEngine:
    """Publishes a project's static assets to its namespace."""

    def __init__(
        self,
        client: KVClient,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize site engine.

        Args:
            client: API client
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.output = output or OutputFormatter()

    def plan(self, target: Target, directory: Optional[Path] = None) -> SyncPlan:
        """Compute the sync plan without changing anything remotely."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self.output.quiet,
        ) as progress:
            progress.add_task("Comparing local assets with remote keys...", total=None)
            return sync(self.client, target, directory)

    def publish(
        self,
        target: Target,
        directory: Optional[Path] = None,
        dry_run: bool = False,
    ) -> dict:
        """Sync a project's site.

        Uploads run first, then the manifest is saved, then stale keys are
        deleted, so a key is never removed while the saved manifest still
        points at it.

        Args:
            target: Project settings
            directory: Asset directory (defaults to the site's bucket)
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with sync statistics

        Examples:
            >>> engine = SiteEngine(client)
            >>> stats = engine.publish(target, dry_run=True)
            >>> print(f"Would upload {stats['uploads']} file(s)")
        """
        start_time = time.time()

        if not self.output.quiet:
            self.output.info(f"Publishing: {target.name}")
            if target.subset:
                self.output.info(f"Subset: {target.subset}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        plan = self.plan(target, directory)
        stats = {
            "uploads": len(plan.to_upload),
            "deletes": len(plan.to_delete),
            "unchanged": plan.unchanged,
            "manifest_entries": len(plan.manifest),
            "manifest_changes": 0,
        }

        store = None
        if target.site is not None and target.site.manifest_path is not None:
            store = ManifestStore(target.site.manifest_path)
            stats["manifest_changes"] = _count_changes(store.load(), plan.manifest)

        self._display_plan(plan)

        if not dry_run:
            self._apply_plan(target, plan, store)

        logger.debug(f"Publish took {time.time() - start_time:.2f}s")

        if not self.output.quiet:
            self._display_summary(stats, dry_run)

        return stats

    def _apply_plan(
        self,
        target: Target,
        plan: SyncPlan,
        store: Optional[ManifestStore] = None,
    ) -> None:
        """Upload, switch the manifest, then delete according to the plan.

        The manifest is saved between the two steps: once it is on disk it
        only refers to stored keys, and the keys it stopped referring to are
        safe to delete.
        """
        namespace_id = site_namespace_id(target)
        operations = SiteOperations(self.client, target.account_id)

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            disable=self.output.quiet,
        ) as progress:
            if plan.to_upload:
                task = progress.add_task("Uploading", total=len(plan.to_upload))
                operations.upload(
                    namespace_id,
                    plan.to_upload,
                    progress_callback=lambda n: progress.advance(task, n),
                )
            if store is not None:
                store.save(plan.manifest)
            if plan.to_delete:
                task = progress.add_task("Deleting", total=len(plan.to_delete))
                operations.delete(
                    namespace_id,
                    plan.to_delete,
                    progress_callback=lambda n: progress.advance(task, n),
                )

    def _display_plan(self, plan: SyncPlan) -> None:
        """Display the sync plan to the user."""
        if self.output.quiet:
            return

        upload_size = sum(len(pair.value) for pair in plan.to_upload)
        self.output.info("Sync plan:")
        if plan.to_upload:
            self.output.info(
                f"  ↑ Upload: {len(plan.to_upload)} file(s) "
                f"({format_size(upload_size)} encoded)"
            )
        if plan.to_delete:
            self.output.info(f"  ✗ Delete: {len(plan.to_delete)} key(s)")
        if plan.unchanged:
            self.output.info(f"  = Unchanged: {plan.unchanged} file(s)")
        self.output.print("")

    def _display_summary(self, stats: dict, dry_run: bool) -> None:
        """Display the sync summary."""
        if dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Success")

        if stats["uploads"] or stats["deletes"]:
            if stats["uploads"]:
                label = "Would upload" if dry_run else "Uploaded"
                self.output.info(f"  {label}: {stats['uploads']}")
            if stats["deletes"]:
                label = "Would delete" if dry_run else "Deleted"
                self.output.info(f"  {label}: {stats['deletes']}")
        else:
            self.output.info("No changes needed - everything is in sync!")
        if stats["manifest_changes"]:
            self.output.info(f"  Manifest entries changed: {stats['manifest_changes']}")


def _count_changes(previous: dict[str, str], current: dict[str, str]) -> int:
    """Count entries added, removed or repointed between two manifests."""
    changed = sum(1 for path, key in current.items() if previous.get(path) != key)
    return changed + sum(1 for path in previous if path not in current)

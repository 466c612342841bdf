"""Per-root preparer that shells out to a content-type specific preparer command."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
import logging
import os

from pydantic import ValidationError

from stagehand.models.content import ContentManifest, ContentRoot, PrepareOutcome, PreparerOptions
from stagehand.services.errors import PreparationError

LOGGER = logging.getLogger(__name__)

DEFAULT_PREPARERS: tuple[tuple[str, str], ...] = (
    ("conf.py", "deconst-preparer-sphinx"),
    ("_config.yml", "deconst-preparer-jekyll"),
)


def load_manifest(root: ContentRoot) -> ContentManifest:
    """Read and validate the marker file of ``root``."""

    try:
        raw = json.loads(root.marker.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PreparationError(f"Unable to read {root.marker}: {exc}", root=root) from exc

    if not isinstance(raw, dict):
        raise PreparationError(f"{root.marker} must contain a JSON object", root=root)

    try:
        return ContentManifest.model_validate(raw)
    except ValidationError as exc:
        raise PreparationError(f"Invalid {root.marker}: {exc}", root=root) from exc


def staging_content_id(content_id_base: str, revision_id: str | None) -> str:
    """Namespace ``content_id_base`` under the revision when staging."""

    if not revision_id:
        return content_id_base
    return f"{revision_id}/{content_id_base}"


@dataclass(slots=True)
class CommandPreparer:
    """Run the preparer command that matches a content root's layout."""

    preparers: tuple[tuple[str, str], ...] = field(default=DEFAULT_PREPARERS)
    extra_env: dict[str, str] = field(default_factory=dict)

    async def prepare(self, root: ContentRoot, options: PreparerOptions) -> PrepareOutcome:
        manifest = load_manifest(root)

        command = self._select_command(root, manifest)
        if command is None:
            LOGGER.info("No preparer matches content root %s; skipping.", root.relative_path)
            return PrepareOutcome(success=True, did_something=False)

        content_id_base = staging_content_id(manifest.content_id_base, options.revision_id)
        env = self._build_env(options, content_id_base)

        LOGGER.info("Preparing %s with %s.", root.relative_path, command)
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                cwd=str(options.content_root or root.path),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise PreparationError(f"Unable to execute preparer {command}: {exc}", root=root) from exc

        raw_stdout, raw_stderr = await process.communicate()
        success = process.returncode == 0
        if not success:
            LOGGER.error("Preparer %s exited with status %s for %s.", command, process.returncode, root.relative_path)
            LOGGER.error("[stdout]\n%s", raw_stdout.decode("utf-8", errors="replace"))
            LOGGER.error("[stderr]\n%s", raw_stderr.decode("utf-8", errors="replace"))

        return PrepareOutcome(success=success, did_something=True, content_id_base=content_id_base)

    def _select_command(self, root: ContentRoot, manifest: ContentManifest) -> str | None:
        if manifest.preparer:
            return manifest.preparer
        for filename, command in self.preparers:
            if (root.path / filename).exists():
                return command
        return None

    def _build_env(self, options: PreparerOptions, content_id_base: str) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self.extra_env)
        env.update(
            {
                "CONTENT_STORE_URL": options.content_service_url,
                "CONTENT_STORE_APIKEY": options.content_service_api_key,
                "CONTENT_ID_BASE": content_id_base,
            }
        )
        if options.revision_id:
            env["REVISION_ID"] = options.revision_id
        return env

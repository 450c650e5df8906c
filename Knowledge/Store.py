"""
Knowledge/Store.py — On-disk artifact set for one application.

Layout::

    <output>/<app>-testing/
        SKILL.md
        app-knowledge.json
        test-patterns.js
        README.md
        .backups/backup-<timestamp>/…   (append-only)
"""
from __future__ import annotations

import json
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from Models import AppKnowledge, KnowledgeFormatError, KnowledgeNotFoundError

from .Render import render_readme, render_skill, render_test_patterns

logger = logging.getLogger(__name__)

KNOWLEDGE_FILE: str = "app-knowledge.json"

#: Every generated artifact, in the order they are written and backed up.
ARTIFACTS: tuple[str, ...] = ("SKILL.md", KNOWLEDGE_FILE, "test-patterns.js", "README.md")

BACKUP_DIR: str = ".backups"


class KnowledgeStore:
    """Reads, backs up and writes the artifact set of one application."""

    def __init__(self, output_directory: str | Path, app_name: str) -> None:
        self.app_name = app_name
        self.skill_name = f"{app_name}-testing"
        self.path = Path(output_directory).expanduser() / self.skill_name

    @property
    def knowledge_path(self) -> Path:
        return self.path / KNOWLEDGE_FILE

    @property
    def backup_root(self) -> Path:
        return self.path / BACKUP_DIR

    def exists(self) -> bool:
        return self.knowledge_path.is_file()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def load(self) -> AppKnowledge:
        """Read and migrate the persisted knowledge.

        Raises :class:`KnowledgeNotFoundError` when there is nothing to
        update and :class:`KnowledgeFormatError` when the file is unusable.
        """
        if not self.path.is_dir():
            raise KnowledgeNotFoundError(
                f"Skill not found at: {self.path}\nCreate it first with --name and --url"
            )
        if not self.knowledge_path.is_file():
            raise KnowledgeNotFoundError(
                f"{KNOWLEDGE_FILE} not found in {self.path}. The skill may be corrupted; "
                "create it again with --name and --url"
            )
        try:
            data = json.loads(self.knowledge_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise KnowledgeFormatError(f"Cannot read {self.knowledge_path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise KnowledgeFormatError(f"Invalid JSON in {self.knowledge_path}: {exc}") from exc
        return AppKnowledge.from_dict(data)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def backup(self, now: Optional[datetime] = None) -> Optional[Path]:
        """Copy every existing artifact into a new timestamped backup directory.

        Returns the backup directory, or *None* when there was nothing to copy.
        """
        present = [name for name in ARTIFACTS if (self.path / name).is_file()]
        if not present:
            return None

        now = now or datetime.now(timezone.utc)
        stamp = now.strftime("%Y%m%dT%H%M%SZ")
        target = self.backup_root / f"backup-{stamp}"
        suffix = 1
        while target.exists():
            target = self.backup_root / f"backup-{stamp}-{suffix}"
            suffix += 1
        target.mkdir(parents=True)

        for name in present:
            shutil.copy2(self.path / name, target / name)
        logger.info("Backup created: %s", target)
        return target

    def save(self, knowledge: AppKnowledge) -> Path:
        """Write every artifact for *knowledge* and return the skill directory."""
        self.path.mkdir(parents=True, exist_ok=True)
        contents = {
            "SKILL.md": render_skill(knowledge, self.skill_name),
            KNOWLEDGE_FILE: json.dumps(knowledge.to_dict(), indent=2) + "\n",
            "test-patterns.js": render_test_patterns(knowledge),
            "README.md": render_readme(knowledge, self.skill_name),
        }
        for name in ARTIFACTS:
            self._write_atomic(self.path / name, contents[name])
        logger.debug("Wrote %d artifacts to %s", len(contents), self.path)
        return self.path

    @staticmethod
    def _write_atomic(target: Path, text: str) -> None:
        tmp = target.with_name(target.name + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, target)

"""
BibTeX file storage.

Locates the .bib file a citation goes into and appends entries to it:
- no .bib file under the workspace: create references.bib
- exactly one: use it
- several: the caller has to choose
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "references.bib"


class BibliographyStore:
    """Finds, creates and appends to .bib files below a workspace root."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        """Initialize store.

        Args:
            root: Workspace directory (from env BIBSCOUT_WORKSPACE, default cwd)
        """
        self.root = Path(root or os.getenv("BIBSCOUT_WORKSPACE") or Path.cwd())

    def find_bib_files(self) -> List[Path]:
        """All .bib files below the root, sorted."""
        return sorted(p for p in self.root.rglob("*.bib") if p.is_file())

    def relative(self, path: Path) -> str:
        """Path relative to the root, for display."""
        try:
            return str(path.relative_to(self.root))
        except ValueError:
            return str(path)

    def resolve_target(self, choice: Optional[Union[str, Path]] = None) -> Path:
        """
        Pick the .bib file to append to.

        Args:
            choice: Explicit file, absolute or relative to the root

        Returns:
            Path of an existing .bib file

        Raises:
            ValueError: If several .bib files exist and none was chosen,
                or the chosen file is not a .bib file below the root
        """
        if choice:
            path = self._inside_root(Path(choice))
            if not path.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text("", encoding="utf-8")
                logger.info(f"Created {self.relative(path)}")
            return path

        bib_files = self.find_bib_files()
        if not bib_files:
            path = self.root / DEFAULT_FILENAME
            path.write_text("", encoding="utf-8")
            logger.info(f"No .bib file found, created {self.relative(path)}")
            return path
        if len(bib_files) == 1:
            return bib_files[0]

        names = ", ".join(self.relative(p) for p in bib_files)
        raise ValueError(f"Several .bib files found, choose one: {names}")

    def _inside_root(self, path: Path) -> Path:
        """Reject targets that are not .bib files below the root."""
        if not path.is_absolute():
            path = self.root / path
        if path.suffix.lower() != ".bib":
            raise ValueError(f"Not a .bib file: {path.name}")
        if not path.resolve().is_relative_to(self.root.resolve()):
            raise ValueError(f"{path} is outside the workspace {self.root}")
        return path

    def append(self, text: str, target: Optional[Union[str, Path]] = None) -> Path:
        """Append a BibTeX entry to the target file and return its path."""
        path = self.resolve_target(target)
        with path.open("a", encoding="utf-8") as handle:
            handle.write("\n" + text)
        logger.info(f"Appended {len(text)} characters to {self.relative(path)}")
        return path

"""Tests for .bib file storage."""

import os
from unittest.mock import patch

import pytest

from bibscout.bibfile import DEFAULT_FILENAME, BibliographyStore

ENTRY = "@article{tong2024diffusion,\n  title  = {Diffusion},\n}\n"


class TestBibliographyStore:
    """Test .bib discovery, creation and appending."""

    def test_creates_references_bib(self, tmp_path):
        store = BibliographyStore(tmp_path)

        path = store.append(ENTRY)

        assert path == tmp_path / DEFAULT_FILENAME
        assert path.read_text(encoding="utf-8") == "\n" + ENTRY

    def test_uses_single_existing_file(self, tmp_path):
        (tmp_path / "paper").mkdir()
        bib = tmp_path / "paper" / "library.bib"
        bib.write_text("@misc{old}\n", encoding="utf-8")
        store = BibliographyStore(tmp_path)

        path = store.append(ENTRY)

        assert path == bib
        assert bib.read_text(encoding="utf-8") == "@misc{old}\n\n" + ENTRY
        assert not (tmp_path / DEFAULT_FILENAME).exists()

    def test_several_files_require_choice(self, tmp_path):
        (tmp_path / "a.bib").write_text("", encoding="utf-8")
        (tmp_path / "b.bib").write_text("", encoding="utf-8")
        store = BibliographyStore(tmp_path)

        with pytest.raises(ValueError, match="a.bib, b.bib"):
            store.append(ENTRY)

        path = store.append(ENTRY, target="b.bib")
        assert path == tmp_path / "b.bib"
        assert (tmp_path / "a.bib").read_text(encoding="utf-8") == ""

    def test_explicit_new_target_created(self, tmp_path):
        store = BibliographyStore(tmp_path)

        path = store.append(ENTRY, target="refs/new.bib")

        assert path == tmp_path / "refs" / "new.bib"
        assert path.read_text(encoding="utf-8") == "\n" + ENTRY

    def test_appends_accumulate(self, tmp_path):
        store = BibliographyStore(tmp_path)

        store.append("first\n")
        store.append("second\n")

        assert (tmp_path / DEFAULT_FILENAME).read_text(encoding="utf-8") == "\nfirst\n\nsecond\n"

    def test_find_bib_files_sorted(self, tmp_path):
        (tmp_path / "z.bib").write_text("", encoding="utf-8")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "a.bib").write_text("", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("", encoding="utf-8")
        store = BibliographyStore(tmp_path)

        assert [store.relative(p) for p in store.find_bib_files()] == [
            os.path.join("sub", "a.bib"),
            "z.bib",
        ]

    def test_root_from_env(self, tmp_path):
        with patch.dict(os.environ, {"BIBSCOUT_WORKSPACE": str(tmp_path)}):
            assert BibliographyStore().root == tmp_path

    @pytest.mark.parametrize("target", ["../outside.bib", "refs/../../outside.bib"])
    def test_target_above_root_rejected(self, tmp_path, target):
        root = tmp_path / "ws"
        root.mkdir()
        store = BibliographyStore(root)

        with pytest.raises(ValueError, match="outside the workspace"):
            store.append(ENTRY, target=target)

        assert not (tmp_path / "outside.bib").exists()

    def test_absolute_target_outside_root_rejected(self, tmp_path):
        root = tmp_path / "ws"
        root.mkdir()
        store = BibliographyStore(root)

        with pytest.raises(ValueError, match="outside the workspace"):
            store.append(ENTRY, target=str(tmp_path / "elsewhere.bib"))

        assert not (tmp_path / "elsewhere.bib").exists()

    def test_absolute_target_inside_root_accepted(self, tmp_path):
        store = BibliographyStore(tmp_path)

        path = store.append(ENTRY, target=str(tmp_path / "refs.bib"))

        assert path.read_text(encoding="utf-8") == "\n" + ENTRY

    @pytest.mark.parametrize("target", ["../outside.txt", ".bashrc", "notes.txt"])
    def test_non_bib_target_rejected(self, tmp_path, target):
        root = tmp_path / "ws"
        root.mkdir()
        store = BibliographyStore(root)

        with pytest.raises(ValueError, match="Not a .bib file"):
            store.append(ENTRY, target=target)

        assert not (tmp_path / "outside.txt").exists()
        assert list(root.iterdir()) == []

"""
Tests for the small pure helpers used by services.
"""

import io
import json
import zipfile
from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from core.exceptions import ValidationError
from infrastructure.database.models import Author, Volume
from services.analytics import month_label, percentage, round_half_up, semester_for_month, tier_label
from services.backup import backup_filename, dict_to_row, row_to_dict
from services.legacy_import import (
    extract_export_zip,
    find_matching_folder,
    load_export_folder,
    normalize_folder_name,
    sanitize_import_filename,
)
from services.submissions import submission_base_dir


class TestAnalyticsHelpers:
    @pytest.mark.parametrize(
        "month,semester",
        [(1, "Winter"), (4, "Winter"), (5, "Summer"), (8, "Summer"), (9, "Fall"), (12, "Fall")],
    )
    def test_semester_for_month(self, month, semester):
        assert semester_for_month(month) == semester

    def test_labels(self):
        assert month_label(2024, 3) == "Mar 2024"
        assert tier_label("Tier 2 (Standard)") == "Tier 2"

    def test_percentage(self):
        assert percentage(1, 3) == 33
        assert percentage(0, 0) == 0

    def test_halves_round_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2
        # 12.5% and 62.5% would go to 12 and 62 under round()
        assert percentage(1, 8) == 13
        assert percentage(5, 8) == 63


class TestSubmissionBaseDir:
    def test_replaces_unsafe_characters(self):
        assert (
            submission_base_dir("Mary-Jo", "O'Neil", "A Day: Out!")
            == "articles/Mary_Jo_O_Neil/A_Day__Out_"
        )

    def test_title_truncated(self):
        assert submission_base_dir("a", "b", "x" * 80).endswith("/" + "x" * 50)


class TestBackupHelpers:
    def test_backup_filename(self):
        assert backup_filename(date(2024, 5, 1)) == "otemanager-backup-2024-05-01.zip"

    def test_row_round_trip_parses_datetimes(self):
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        author = Author(
            id=str(uuid4()),
            given_name="Jane",
            surname="Doe",
            email="jane@example.com",
            created_at=created,
        )
        data = json.loads(json.dumps(row_to_dict(author), default=str))
        data["created_at"] = created.isoformat()
        data["unknown_column"] = "ignored"

        restored = dict_to_row(Author, data)

        assert restored.email == "jane@example.com"
        assert restored.created_at == created

    def test_dict_to_row_skips_missing_keys(self):
        volume = dict_to_row(Volume, {"id": "v1", "volume_number": 3})

        assert volume.volume_number == 3
        assert volume.year is None


class TestLegacyImportHelpers:
    def test_sanitize_import_filename(self):
        assert sanitize_import_filename("My  Story (final).docx") == "My_Story_final_.docx"

    def test_normalize_folder_name(self):
        assert normalize_folder_name("It’s “Here”") == "It's \"Here\""
        assert normalize_folder_name("Café") == "Cafe"

    def test_find_matching_folder(self, tmp_path):
        (tmp_path / "It's Spring").mkdir()
        (tmp_path / "Other-Story").mkdir()

        assert find_matching_folder(tmp_path, "It's Spring").name == "It's Spring"
        assert find_matching_folder(tmp_path, "It’s Spring").name == "It's Spring"
        assert find_matching_folder(tmp_path, "other story").name == "Other-Story"
        assert find_matching_folder(tmp_path, "Missing") is None
        assert find_matching_folder(None, "x") is None

    def test_load_export_folder(self, tmp_path):
        (tmp_path / "items.json").write_text(json.dumps([{"Title": "A"}]))
        (tmp_path / "Documents").mkdir()

        export = load_export_folder(tmp_path)

        assert export.records == [{"Title": "A"}]
        assert export.documents_dir.name == "Documents"
        assert export.photos_dir is None

    def test_load_export_folder_errors(self, tmp_path):
        with pytest.raises(ValidationError):
            load_export_folder(tmp_path)

        (tmp_path / "items.json").write_text('{"not": "a list"}')
        with pytest.raises(ValidationError):
            load_export_folder(tmp_path)

    def test_extract_export_zip_strips_root_folder(self, tmp_path):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("export/items.json", json.dumps([{"Title": "A"}]))
            archive.writestr("export/documents/A/a.docx", b"doc")
            archive.writestr("__MACOSX/export/._items.json", b"junk")

        export = extract_export_zip(buffer.getvalue(), tmp_path)

        assert len(export.records) == 1
        assert (tmp_path / "documents" / "A" / "a.docx").read_bytes() == b"doc"
        assert not (tmp_path / "__MACOSX").exists()

    def test_extract_export_zip_rejects_non_zip(self, tmp_path):
        with pytest.raises(ValidationError):
            extract_export_zip(b"plain bytes", tmp_path)


class TestImportCli:
    def test_missing_folder_exits_with_error(self, tmp_path):
        from scripts.import_data import main

        assert main([str(tmp_path / "missing")]) == 2

    def test_rejects_unknown_mode(self, tmp_path):
        from scripts.import_data import main

        with pytest.raises(SystemExit):
            main([str(tmp_path), "--mode", "wipe"])

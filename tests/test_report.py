from catalog.models import RowIssue, RunStats
from catalog.report import build_plaintext_report


class TestPlaintextReport:
    def test_summary_counts(self):
        stats = RunStats(new_items=1, new_line_items=3, skipped=2, deleted=1)
        text = build_plaintext_report(stats, "export.csv")

        assert text.startswith("Import report for export.csv")
        assert "1 items created" in text
        assert "3 line items created" in text
        assert "2 unchanged" in text
        assert "1 line items deleted" in text
        assert "No changes." not in text

    def test_no_changes(self):
        text = build_plaintext_report(RunStats(skipped=4), "export.csv")
        assert "No changes." in text
        assert "Skipped rows" not in text
        assert "WARNING" not in text

    def test_lists_skipped_rows(self):
        stats = RunStats(
            new_line_items=1,
            issues=[
                RowIssue(2, "0", "placeholder row: item id is zero"),
                RowIssue(5, "", "placeholder row: blank item id"),
            ],
        )
        text = build_plaintext_report(stats, "export.csv")

        assert "Skipped rows (2):" in text
        assert "  - row 2 (item 0): placeholder row: item id is zero" in text
        assert "  - row 5 (item -): placeholder row: blank item id" in text

    def test_pruning_warning(self):
        text = build_plaintext_report(RunStats(pruning_skipped=True), "empty.csv")
        assert "orphan cleanup was skipped" in text
        assert "missing from this export were kept" in text

# catalog/report.py
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .models import RunStats

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


def build_plaintext_report(stats: RunStats, source_name: str) -> str:
    template = env.get_template("run_report.txt")

    summary_text = (
        f"{stats.new_items} items created · {stats.new_line_items} line items created · "
        f"{stats.updated} updated · {stats.skipped} unchanged\n"
        f"{stats.deleted} line items deleted · {stats.deleted_items} items deleted · "
        f"{stats.failed} failed"
    )

    issues = [
        {
            "row_number": issue.row_number,
            "item_identifier": issue.item_identifier or "-",
            "reason": issue.reason,
        }
        for issue in stats.issues
    ]

    ctx = {
        "source_name": source_name,
        "summary_text": summary_text,
        "pruning_skipped": stats.pruning_skipped,
        "issues": issues,
        "has_changes": stats.has_changes,
    }

    return template.render(**ctx)

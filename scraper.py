import re
from typing import List

from bs4 import BeautifulSoup

from models import SubjectRecord

SUBJECT_ROWS = ".atten-sub.bus-stops ul li"

# field name -> selector relative to a subject row
ROW_FIELDS = (
    ("subject", "h5"),
    ("time_slot", ".stp-detail p.text-primary"),
    ("faculty", ".fac-status p.text-primary"),
    ("status", ".fac-status .status"),
)

HIDDEN_STYLE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)


class RowExtractionError(ValueError):
    """Raised when a subject row is missing one of its fields."""


def _drop_hidden(soup):
    # page.content() keeps nodes the browser does not render; rendered text skips them
    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if tag.has_attr("hidden") or HIDDEN_STYLE.search(tag.get("style", "")):
            tag.decompose()


def _text(node):
    return " ".join(node.get_text(" ", strip=True).split())


def parse_subject_rows(html: str) -> List[SubjectRecord]:
    """Extract the subject-wise attendance rows from the rendered attendance page.

    Rows are returned in page order. A row missing any field aborts the whole
    parse; a page without rows yields an empty list. Inline-hidden nodes
    (`hidden`, `display: none`, `visibility: hidden`) are ignored.
    """
    soup = BeautifulSoup(html, "html.parser")
    _drop_hidden(soup)
    subjects = []

    for index, row in enumerate(soup.select(SUBJECT_ROWS), start=1):
        values = {}
        for name, selector in ROW_FIELDS:
            node = row.select_one(selector)
            if node is None:
                raise RowExtractionError(
                    f"Subject row {index}: no element matching '{selector}' ({name})"
                )
            values[name] = _text(node)
        subjects.append(SubjectRecord(**values))

    return subjects

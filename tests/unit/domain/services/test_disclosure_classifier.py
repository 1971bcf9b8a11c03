from __future__ import annotations

import pytest

from bistfin.domain.entities.disclosure import DocumentKind
from bistfin.domain.services.disclosure_classifier import classify_disclosure


@pytest.mark.parametrize(
    "title",
    [
        "Faaliyet Raporu (Konsolide)",
        "YILLIK FAALİYET RAPORU",
        "Operating Review Q3",
        "Annual Report 2023",
    ],
)
def test_operating_reports_are_detected(title: str) -> None:
    assert classify_disclosure(title) is DocumentKind.OPERATING


@pytest.mark.parametrize("title", ["Finansal Rapor", "Financial Statements", "", None])
def test_everything_else_is_financial(title: str | None) -> None:
    assert classify_disclosure(title) is DocumentKind.FINANCIAL

import itertools

import pytest

from earnout_tee.aggregator import aggregate
from earnout_tee.documents import DocumentKind
from earnout_tee.errors import ValidationError
from earnout_tee.normalizer import normalize

MIXED_DOCUMENTS = [
    {"journalEntryId": "JE-1", "credits": [{"account": "Sales Revenue", "amount": 50000}]},
    {"employeeDetails": {}, "grossPay": 20000},
    {"journalEntryId": "JE-2", "credits": [{"account": "Sales Revenue", "amount": "1234.56"}],
     "debits": [{"account": "Freight", "amount": 34.56}]},
    {"employeeDetails": {"id": 2}, "grossPay": 0.01},
]


def test_scenario_kpi(documents):
    result = aggregate(normalize(documents))
    assert result.kpi == 30000 * 100
    assert result.entries_processed == 2
    assert result.to_dict()["kpi"] == 30000


def test_initial_kpi_is_added():
    result = aggregate(normalize(MIXED_DOCUMENTS[:1]), initial_kpi=-500)
    assert result.kpi == 5000000 - 500


def test_breakdown_subtotals():
    result = aggregate(normalize(MIXED_DOCUMENTS))
    assert result.breakdown[DocumentKind.JOURNAL_ENTRY] == 5000000 + 120000
    assert result.breakdown[DocumentKind.PAYROLL] == -2000000 - 1
    assert result.kpi == sum(result.breakdown.values())
    assert result.to_dict()["breakdown"] == {"JournalEntry": 51200, "Payroll": -20000.01}


def test_kpi_independent_of_order():
    expected = aggregate(normalize(MIXED_DOCUMENTS)).kpi
    for perm in itertools.permutations(MIXED_DOCUMENTS):
        assert aggregate(normalize(list(perm))).kpi == expected


def test_empty_entries_yield_initial_kpi():
    result = aggregate([], initial_kpi=700)
    assert result.kpi == 700
    assert result.entries_processed == 0
    assert dict(result.breakdown) == {}


def test_kpi_past_int64_rejected():
    largest = {"grossPay": "92233720368547758.07"}
    with pytest.raises(ValidationError):
        aggregate(normalize([largest, largest]))
    with pytest.raises(ValidationError):
        aggregate(normalize(MIXED_DOCUMENTS[:1]), initial_kpi=2 ** 63 - 1)


def test_intermediate_overflow_that_cancels_out_is_accepted():
    entries = normalize([
        {"credits": [{"account": "Sales Revenue", "amount": "92233720368547758.07"}]},
        {"credits": [{"account": "Sales Revenue", "amount": 1}]},
        {"grossPay": 1},
    ])
    assert aggregate(entries).kpi == 2 ** 63 - 1

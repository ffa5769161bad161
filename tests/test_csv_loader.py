from datetime import date

import pytest

from smartsave.config import DEFAULT_CONFIG
from smartsave.loaders import get_loader
from smartsave.loaders.csv_loader import CSVLoader, parse_amount

SAMPLE = """\
date,description,amount,currency,account_number
2025-01-05,Rent payment,"-1,200.00",EUR,NL01
2025-01-06,Salary deposit,3500,EUR,NL01
2025-01-07,,-10,EUR,NL01
,Coffee,-3,EUR,NL01
2025-01-08,Mystery,abc,EUR,
2025-01-10,Cafe,,EUR,NL01
2025-01-09,Gym membership,-5,EUR,NL01
not-a-date,Cafe,-4,EUR,NL01
"""


def write_sample(path, text=SAMPLE):
    path.write_text(text)
    return path


def test_parse_amount():
    assert parse_amount("1,234.50") == 1234.5
    assert parse_amount("-12") == -12.0
    assert parse_amount("twelve") == 0.0
    for raw in ("NaN", "nan", "inf", "-Infinity"):
        assert parse_amount(raw) == 0.0


def test_csv_loader_drops_and_coerces(tmp_path):
    txs = list(CSVLoader().load(str(write_sample(tmp_path / "stmt.csv"))))

    assert [tx.description for tx in txs] == [
        "Rent payment",
        "Salary deposit",
        "Mystery",
        "Gym membership",
    ]
    rent, salary, mystery, _ = txs
    assert rent.date == date(2025, 1, 5)
    assert rent.amount == -1200.0
    assert rent.category == "Rent & Housing"
    assert rent.currency == "EUR"
    assert rent.account_number == "NL01"
    assert salary.category == "Income"
    assert mystery.amount == 0.0
    assert mystery.category == "Other"
    assert mystery.account_number is None
    assert len({tx.id for tx in txs}) == 4


def test_csv_loader_keeps_supplied_category():
    text = "Date,Description,Amount,Category\n2025-02-01,Netflix,-15,Entertainment\n"
    txs = CSVLoader().load_text(text)
    assert txs[0].category == "Entertainment"


def test_csv_loader_missing_column():
    with pytest.raises(RuntimeError):
        CSVLoader().load_text("date,description\n2025-01-01,Cafe\n")


def test_get_loader_uses_config_categories():
    cfg = dict(DEFAULT_CONFIG, categories={"coffee": ["cafe"]})
    loader = get_loader("csv", cfg)
    txs = loader.load_text("date,description,amount\n2025-01-01,Cafe Nero,-3\n")
    assert txs[0].category == "coffee"


def test_csv_loader_non_finite_amounts_become_zero():
    text = (
        "date,description,amount\n"
        "2025-03-01,Salary,3000\n"
        "2025-03-02,Bonus,inf\n"
        "2025-03-03,Cafe,NaN\n"
    )
    txs = CSVLoader().load_text(text)
    assert [tx.amount for tx in txs] == [3000.0, 0.0, 0.0]

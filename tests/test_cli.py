"""Tests for the budget CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

import budget_ingest.lib.term_prompt as term_prompt
from budget_ingest.bin.budget import main
from budget_ingest.lib.descriptions import DescriptionNormalizer
from budget_ingest.lib.metadata import AbortAll, DescriptionMetadata, Text
from budget_ingest.lib.state import BudgetStore

USAA_CSV = (
    "Date,Description,Original Description,Category,Amount,Status\n"
    "2024-01-05,AMAZON MKTPLACE,AMAZON MKTPLACE PMTS,Shopping,-42.10,Posted\n"
    "2024-01-06,Capital One Online Pymt,CAPITAL ONE,Credit Card Payment,-500.00,Posted\n"
    "2024-01-15,PAYROLL ACME CORP,ACME,Income,2500.00,Posted\n"
)
CAPITAL_ONE_CSV = (
    "Transaction Date,Posted Date,Card No.,Description,Category,Debit,Credit\n"
    "2024-02-03,2024-02-04,1234,CHIPOTLE 1234,Dining,15.75,\n"
    "2024-02-05,2024-02-06,1234,CREDIT-CASH BACK REWARD,Payment/Credit,,12.34\n"
)


class FakePrompt:
    """Answers every question with the same text, optionally aborting at a description."""

    def __init__(self, abort_on: str | None = None) -> None:
        self.abort_on = abort_on

    def __call__(self, question: str):
        if self.abort_on and f"'{self.abort_on}'" in question:
            return AbortAll()
        return Text("info")


def _project(tmp_path: Path, files: dict[str, str]) -> Path:
    new_dir = tmp_path / "files" / "new"
    new_dir.mkdir(parents=True)
    for name, content in files.items():
        (new_dir / name).write_text(content)
    return tmp_path


def test_run_no_prompt_stores_records_and_prints_totals(tmp_path: Path):
    root = _project(tmp_path, {"usaa.csv": USAA_CSV, "capone.csv": CAPITAL_ONE_CSV})
    result = CliRunner().invoke(main, ["run", "--root", str(root), "--no-prompt"])

    assert result.exit_code == 0, result.output
    assert "Found total budget records: 4" in result.output
    assert "2454.49" in result.output  # 2500 + 12.34 - 42.10 - 15.75

    with BudgetStore(root / "data" / "budget.sqlite") as store:
        assert store.count_transactions() == 4


def test_run_collects_metadata_for_new_descriptions(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    root = _project(tmp_path, {"usaa.csv": USAA_CSV})
    with BudgetStore(root / "data" / "budget.sqlite") as store:
        store.insert_description_metadata([DescriptionMetadata("amazon", "shopping")])

    # Descriptions are asked in sorted order: "payroll acme corp" is the only new one.
    monkeypatch.setattr(term_prompt, "TerminalPrompt", lambda: FakePrompt())
    result = CliRunner().invoke(main, ["run", "--root", str(root), "--no-store-records"])

    assert result.exit_code == 0, result.output
    assert "Uploaded information for 1 description(s)" in result.output
    with BudgetStore(root / "data" / "budget.sqlite") as store:
        assert store.count_transactions() == 0
        stored = {m.description: m for m in store.select_all_description_metadata()}
    assert stored["payroll acme corp"].primary == "info"
    assert stored["amazon"].primary == "shopping"


def test_run_abort_keeps_earlier_descriptions(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    root = _project(tmp_path, {"capone.csv": CAPITAL_ONE_CSV})
    monkeypatch.setattr(term_prompt, "TerminalPrompt", lambda: FakePrompt(abort_on="credit-cash back reward"))
    result = CliRunner().invoke(main, ["run", "--root", str(root)])

    assert result.exit_code == 0, result.output
    with BudgetStore(root / "data" / "budget.sqlite") as store:
        assert [m.description for m in store.select_all_description_metadata()] == ["chipotle"]


def test_run_skips_unrecognized_and_broken_files(tmp_path: Path):
    root = _project(
        tmp_path,
        {
            "a_unknown.csv": "Posting Date,Amount\n2024-01-01,1.00\n",
            "b_broken.csv": "Date,Description,Original Description,Category,Amount,Status\n2024-01-01,X,X,X,abc,Posted\n",
            "c_usaa.csv": USAA_CSV,
        },
    )
    result = CliRunner().invoke(main, ["run", "--root", str(root), "--no-prompt"])

    assert result.exit_code == 0, result.output
    assert "Found total budget records: 2" in result.output
    assert "b_broken.csv" in result.output


def test_run_without_new_files(tmp_path: Path):
    root = _project(tmp_path, {})
    result = CliRunner().invoke(main, ["run", "--root", str(root)])
    assert result.exit_code == 0
    assert "There are no new budget files to process." in result.output


def test_run_missing_new_dir(tmp_path: Path):
    result = CliRunner().invoke(main, ["run", "--root", str(tmp_path)])
    assert result.exit_code == 1


def test_parse_shows_records(tmp_path: Path):
    csv_path = tmp_path / "capone.csv"
    csv_path.write_text(CAPITAL_ONE_CSV)
    result = CliRunner().invoke(main, ["parse", str(csv_path), "--root", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "chipotle" in result.output
    assert "-3.41" in result.output


def test_descriptions_and_export_rules(tmp_path: Path):
    runner = CliRunner()
    result = runner.invoke(main, ["descriptions", "--root", str(tmp_path)])
    assert result.exit_code == 0
    assert "No description information stored yet." in result.output

    result = runner.invoke(main, ["export-rules", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "config" / "descriptions.yaml").exists()

    result = runner.invoke(main, ["export-rules", "--root", str(tmp_path)])
    assert result.exit_code == 1


def test_run_skips_undecodable_file(tmp_path: Path):
    root = _project(tmp_path, {"b_usaa.csv": USAA_CSV})
    (root / "files" / "new" / "a_latin1.csv").write_bytes(
        b"Date,Description,Original Description,Category,Amount,Status\n"
        b"2024-01-05,CAF\xc9 ROUGE,,Dining,-8.00,Posted\n"
    )
    result = CliRunner().invoke(main, ["run", "--root", str(root), "--no-prompt"])

    assert result.exit_code == 0, result.output
    assert "a_latin1.csv" in result.output
    assert "Found total budget records: 2" in result.output
    with BudgetStore(root / "data" / "budget.sqlite") as store:
        assert store.count_transactions() == 2


def test_export_rules_force_writes_builtin_table(tmp_path: Path):
    path = tmp_path / "config" / "descriptions.yaml"
    path.parent.mkdir()
    path.write_text("rules:\n  - prefix: netflix\n    name: netflix\n")

    result = CliRunner().invoke(main, ["export-rules", "--root", str(tmp_path), "--force"])

    assert result.exit_code == 0, result.output
    assert DescriptionNormalizer.from_yaml(path).rules == DescriptionNormalizer().rules

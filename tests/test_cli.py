import io
import json
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from receipt_parser.cli import main as cli_main


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for key in ("RECEIPT_ITEM_MODE", "RECEIPT_FALLBACK_TOLERANCE", "RECEIPT_FALLBACK_PREFER_LARGER"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def _run(argv, capsys):
    code = cli_main.main(argv)
    return code, capsys.readouterr().out


def test_parse_single_file(tmp_path, capsys):
    receipt = tmp_path / "receipt.txt"
    receipt.write_text("Date: 2024-03-25\nCoffee 2.50\nTotal 2.50 EUR\n", encoding="utf-8")

    code, out = _run(["parse", str(receipt)], capsys)

    assert code == 0
    payload = json.loads(out)
    assert payload["date"] == "2024-03-25"
    assert payload["total"] == "2.50 EUR"
    assert payload["items"] == [{"name": "Coffee", "price": "2.50 EUR"}]


def test_parse_several_files_as_pages(tmp_path, capsys):
    first = tmp_path / "p1.txt"
    second = tmp_path / "p2.txt"
    first.write_text("Kava 1,80\n", encoding="utf-8")
    second.write_text("Za plačilo 1,80 €\n", encoding="utf-8")

    code, out = _run(["parse", "--mode", "flat", str(first), str(second)], capsys)

    assert code == 0
    payload = json.loads(out)
    assert payload["total"] == "1.80 €"
    assert payload["items"] == [{"name": "Kava", "price": "1.80 €"}]
    assert "€" in out


def test_parse_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("Total:\n9.99\n"))

    code, out = _run(["parse", "--normalize"], capsys)

    assert code == 0
    assert json.loads(out)["total"] == "9.99 €"


def test_item_mode_from_dotenv(tmp_path, capsys):
    (tmp_path / ".env").write_text("RECEIPT_ITEM_MODE=flat\n", encoding="utf-8")
    receipt = tmp_path / "receipt.txt"
    receipt.write_text("Milk 1.20 Bread 2.10", encoding="utf-8")

    code, out = _run(["parse", str(receipt)], capsys)

    assert code == 0
    assert [it["name"] for it in json.loads(out)["items"]] == ["Milk", "Bread"]


def test_missing_file_exits_with_error(tmp_path, capsys):
    code, out = _run(["parse", str(tmp_path / "nope.txt")], capsys)
    assert code == 2
    assert out == ""


def test_unknown_mode_is_an_argparse_error(capsys):
    with pytest.raises(SystemExit) as exc:
        cli_main.main(["parse", "--mode", "columns"])
    assert exc.value.code == 2

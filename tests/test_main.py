import sys
import os
import io
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from main import main, format_decimal, write_accounts
from models import ClientAccount


class TestFormatDecimal:
    def test_trailing_zeros_removed(self):
        assert format_decimal(Decimal("1.5000")) == "1.5"
        assert format_decimal(Decimal("100")) == "100"
        assert format_decimal(Decimal("0.0000")) == "0"

    def test_truncated_to_four_places(self):
        assert format_decimal(Decimal("2.71828")) == "2.7182"

    def test_negative(self):
        assert format_decimal(Decimal("-30")) == "-30"
        assert format_decimal(Decimal("-0.00001")) == "0"

    def test_balances_wider_than_default_precision(self):
        assert format_decimal(Decimal("1800000000000000000000000.12345")) == "1800000000000000000000000.1234"
        assert format_decimal(Decimal("1800000000000000000000000")) == "1800000000000000000000000"


class TestWriteAccounts:
    def test_output_rows(self):
        out = io.StringIO()
        accounts = {
            2: ClientAccount(client_id=2, available=Decimal("3.0")),
            1: ClientAccount(client_id=1, available=Decimal("0"), held=Decimal("5.0"), locked=True),
        }

        write_accounts(accounts, out)

        assert out.getvalue().splitlines() == [
            "client,available,held,total,locked",
            "2,3,0,3,false",
            "1,0,5,5,true",
        ]


class TestMain:
    def test_usage_without_arguments(self, capsys):
        assert main([]) == 1
        assert "Usage" in capsys.readouterr().err

    def test_missing_file_exits_nonzero(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.csv")]) == 1
        assert capsys.readouterr().out == ""

    def test_malformed_file_exits_nonzero(self, tmp_path, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("type,client,tx,amount\ndeposit,1,1,ten\n")

        assert main([str(csv_file)]) == 1
        assert capsys.readouterr().out == ""

    def test_end_to_end(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setenv("PAYMENTS_REPORT_STATS", "false")
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 5.0",
            "deposit, 2, 2, 3.0",
            "withdrawal, 1, 3, 1.5",
            "dispute, 2, 2,",
            "chargeback, 2, 2,",
        ]))

        assert main([str(csv_file)]) == 0

        captured = capsys.readouterr()
        assert captured.out.splitlines() == [
            "client,available,held,total,locked",
            "1,3.5,0,3.5,false",
            "2,0,0,0,true",
        ]
        assert "Processed" not in captured.err

    def test_oversized_amount_exits_nonzero(self, tmp_path, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("type,client,tx,amount\ndeposit,1,1,1e30\n")

        assert main([str(csv_file)]) == 1
        assert capsys.readouterr().out == ""

    def test_large_balances_written_in_full(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setenv("PAYMENTS_REPORT_STATS", "false")
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("type,client,tx,amount\n" + "".join(
            f"deposit,1,{tx},1000000000000000\n" for tx in range(1, 4)
        ))

        assert main([str(csv_file)]) == 0

        assert capsys.readouterr().out.splitlines() == [
            "client,available,held,total,locked",
            "1,3000000000000000,0,3000000000000000,false",
        ]

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from token_tax.config import settings
from token_tax.main import app
from token_tax.models.token_tax_rec import CSV_COLUMNS

HEADER = ",".join(CSV_COLUMNS)
PREFIX = f"{settings.api_prefix}/records"


@pytest.fixture
def client():
    return TestClient(app)


def _file(content: str, name: str = "tokentax.csv"):
    return (name, content.encode("utf-8"), "text/csv")


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["version"] == settings.api_version


def test_upload_returns_records(client, sample_csv):
    response = client.post(f"{PREFIX}/upload", files={"file": _file(sample_csv)})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["filename"] == "tokentax.csv"
    assert body["record_count"] == 10
    assert body["error_count"] == 0

    margin_trade = body["records"][2]
    assert margin_trade["Type"] == "Trade"
    assert margin_trade["SellAmount"] == "312.00"
    assert margin_trade["FeeAmount"] == "0.00124"
    assert margin_trade["Group"] == "margin"
    assert margin_trade["Date"] == "1970-01-01 00:00:00"
    assert body["records"][0]["SellAmount"] is None


def test_upload_reports_bad_rows(client):
    content = f"{HEADER}\nDeposit,1,BTC,,,,,,,,2020-01-01 00:00:00\nTrade,1,ETH,1,BTC,,,,,,yesterday\n"
    response = client.post(f"{PREFIX}/upload", files={"file": _file(content)})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "partial"
    assert body["record_count"] == 1
    assert body["errors"] == [
        {"line": 3, "field": "Date", "value": "yesterday", "message": body["errors"][0]["message"]}
    ]


def test_upload_rejects_wrong_header(client):
    response = client.post(f"{PREFIX}/upload", files={"file": _file("a,b,c\n1,2,3\n")})
    assert response.status_code == 400
    assert "header" in response.json()["detail"]


def test_upload_accepts_byte_order_mark(client, sample_csv):
    content = "\ufeff" + sample_csv.lstrip()
    response = client.post(f"{PREFIX}/upload", files={"file": _file(content)})
    assert response.status_code == 200
    assert response.json()["record_count"] == 10


def test_upload_row_limit(client, sample_csv, monkeypatch):
    monkeypatch.setattr(settings, "max_records_per_upload", 5)
    response = client.post(f"{PREFIX}/upload", files={"file": _file(sample_csv)})
    assert response.status_code == 413


def test_row_limit_applies_before_decoding_remaining_rows(client, monkeypatch):
    monkeypatch.setattr(settings, "max_records_per_upload", 1)
    content = f"{HEADER}\nDeposit,1,BTC,,,,,,,,2021-03-01 00:00:00\nbad,row\n"
    response = client.post(f"{PREFIX}/upload", files={"file": _file(content)})
    assert response.status_code == 413
    assert "more than 1 data rows" in response.json()["detail"]

    response = client.post(f"{PREFIX}/normalize", files=[("files", _file(content))])
    assert response.status_code == 413


def test_normalize_merges_files(client):
    file_a = f"{HEADER}\nDeposit,1,BTC,,,,,,,,2021-03-01 00:00:00\nDeposit,2,BTC,,,,,,,,2020-03-01 00:00:00\n"
    file_b = f"{HEADER}\nDeposit,1,BTC,,,,,,,,2021-03-01 00:00:00\nWithdrawal,,,1,BTC,,,,,,2021-01-01 00:00:00\n"
    response = client.post(
        f"{PREFIX}/normalize",
        files=[("files", _file(file_a, "a.csv")), ("files", _file(file_b, "b.csv"))],
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines() == [
        HEADER,
        "Deposit,2,BTC,,,,,,,,2020-03-01 00:00:00",
        "Withdrawal,,,1,BTC,,,,,,2021-01-01 00:00:00",
        "Deposit,1,BTC,,,,,,,,2021-03-01 00:00:00",
    ]


def test_normalize_filters_year(client):
    content = f"{HEADER}\nDeposit,1,BTC,,,,,,,,2021-03-01 00:00:00\nDeposit,2,BTC,,,,,,,,2020-03-01 00:00:00\n"
    response = client.post(
        f"{PREFIX}/normalize",
        params={"year": 2020},
        files=[("files", _file(content))],
    )
    assert response.status_code == 200
    assert response.text.splitlines() == [HEADER, "Deposit,2,BTC,,,,,,,,2020-03-01 00:00:00"]


def test_normalize_rejects_bad_row(client):
    content = f"{HEADER}\nDeposit,1,BTC,,,,,,futures,,2021-03-01 00:00:00\n"
    response = client.post(f"{PREFIX}/normalize", files=[("files", _file(content, "bad.csv"))])
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail.startswith("bad.csv: line 2")
    assert "Group" in detail
    assert "'futures'" in detail


def test_export_returns_workbook(client, sample_csv):
    response = client.post(f"{PREFIX}/export", files={"file": _file(sample_csv)})
    assert response.status_code == 200
    wb = load_workbook(BytesIO(response.content))
    assert wb.sheetnames == ["Records", "Summary"]
    assert wb["Records"].max_row == 11

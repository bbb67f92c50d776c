import os
from datetime import datetime
from decimal import Decimal

from conftest import DATA_DIR


def _upload(client, name, content):
    return client.post("/currencies/stats", files={"file": (name, content, "text/csv")})


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_currency(client, currency_repo):
    r = client.post("/currencies", json={"symbol": "ETH"})
    assert r.status_code == 201
    assert "ETH" in currency_repo.items


def test_create_duplicate_currency_is_bad_request(client):
    r = client.post("/currencies", json={"symbol": "BTC"})
    assert r.status_code == 400
    assert r.json() == {"detail": "Currency 'BTC' already exists"}


def test_create_currency_requires_symbol(client):
    r = client.post("/currencies", json={})
    assert r.status_code == 422


def test_get_one_and_all_currencies(client):
    client.post("/currencies", json={"symbol": "ETH"})
    r = client.get("/currencies/ETH")
    assert r.status_code == 200
    assert r.json() == {"symbol": "ETH"}

    r = client.get("/currencies")
    assert r.status_code == 200
    assert r.json() == [{"symbol": "BTC"}, {"symbol": "ETH"}]


def test_get_one_currency_not_found(client):
    r = client.get("/currencies/XRP")
    assert r.status_code == 404
    assert r.json()["detail"] == "Currency 'XRP' not found"


def test_upload_and_get_stats(client, stats_repo):
    with open(os.path.join(DATA_DIR, "btc_valid.csv"), "rb") as f:
        r = _upload(client, "btc_valid.csv", f.read())
    assert r.status_code == 201
    assert len(stats_repo.committed) == 5

    r = client.get(
        "/currencies/stats/BTC",
        params={"startDateTime": "2000-01-01T00:00:00", "endDateTime": "2030-01-01T00:00:00"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["symbol"] == "BTC"
    assert Decimal(body["minPrice"]) == Decimal("46813.21")
    assert Decimal(body["maxPrice"]) == Decimal("47736.98")
    assert datetime.fromisoformat(body["oldestDate"]) == datetime.fromtimestamp(1641009600)
    assert datetime.fromisoformat(body["newestDate"]) == datetime.fromtimestamp(1641096000)


def test_upload_unknown_currency_is_not_found(client):
    with open(os.path.join(DATA_DIR, "eth_valid.csv"), "rb") as f:
        r = _upload(client, "eth_valid.csv", f.read())
    assert r.status_code == 404
    assert r.json()["detail"] == "Currency not found, need to enable the currency first"


def test_upload_invalid_csv_is_bad_request(client):
    r = _upload(client, "bad.csv", b"Timestamp,Symbol,Price\n1641308400000;BTC;1\n")
    assert r.status_code == 400
    assert r.json()["detail"] == "CSV file must contain exactly 3 columns per line"


def test_upload_mixed_currencies_is_bad_request(client, stats_repo):
    r = _upload(
        client,
        "mixed.csv",
        b"Timestamp,Symbol,Price\n1641308400000,BTC,1\n1641308460000,ETH,2\n",
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Multiple currencies found, expected only 'BTC' but found 'ETH'"
    assert stats_repo.committed == []


def test_normalized_ranking(client):
    client.post("/currencies", json={"symbol": "ETH"})
    _upload(client, "btc.csv", b"ts,symbol,price\n1641308400000,BTC,20\n1641308460000,BTC,50\n")
    _upload(client, "eth.csv", b"ts,symbol,price\n1641308400000,ETH,10\n1641308460000,ETH,50\n")

    r = client.get(
        "/currencies/stats",
        params={"startDateTime": "2000-01-01T00:00:00", "endDateTime": "2030-01-01T00:00:00"},
    )
    assert r.status_code == 200
    body = r.json()
    assert [item["symbol"] for item in body] == ["ETH", "BTC"]
    assert Decimal(body[0]["normalizedPrice"]) == Decimal("4")
    assert Decimal(body[1]["normalizedPrice"]) == Decimal("1.5")


def test_normalized_ranking_empty(client):
    r = client.get("/currencies/stats")
    assert r.status_code == 200
    assert r.json() == []


def test_stats_wrong_period(client):
    r = client.get(
        "/currencies/stats/BTC",
        params={"startDateTime": "2022-05-02T10:00:00", "endDateTime": "2022-02-02T10:00:00"},
    )
    assert r.status_code == 400
    assert (
        r.json()["detail"]
        == "The start date '2022-05-02T10:00' must be before the end date '2022-02-02T10:00'"
    )


def test_highest_for_day(client, stats_repo):
    stats_repo.add_point("BTC", datetime(2022, 1, 1, 1), Decimal("20"))
    stats_repo.add_point("BTC", datetime(2022, 1, 1, 2), Decimal("50"))
    r = client.get("/currencies/stats/highest", params={"day": "2022-01-01"})
    assert r.status_code == 200
    assert r.json()["symbol"] == "BTC"
    assert Decimal(r.json()["normalizedPrice"]) == Decimal("1.5")


def test_highest_for_day_not_found(client):
    r = client.get("/currencies/stats/highest", params={"day": "2025-12-31"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Prices not found for the day '2025-12-31'"

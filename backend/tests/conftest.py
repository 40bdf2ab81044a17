import re
from typing import Any, Dict, List, Optional

import pytest
from botocore.exceptions import ClientError

from crimelens import config
from crimelens.db import dynamo
from crimelens.services import sns_alerts

CSV_HEADER = "Report.Number,Date.of.Occurrence,Time.of.Occurrence,City,Crime,Victim.Age,Victim.Gender,Severity,Latitude,Longitude"

# 04-01-2020 is a Saturday, 06-01-2020 a Monday
SAMPLE_ROWS = [
    "1,06-01-2020,23:30,Delhi,THEFT,34,M,2,28.60,77.20",
    "2,06-01-2020,23:00,Delhi,THEFT,22,F,2,28.70,77.30",
    "3,04-01-2020,10:00,Delhi,ASSAULT,41,M,3,28.50,77.10",
    "4,05-01-2020,09:40,Mumbai,FRAUD,38,F,1,19.00,72.80",
    "5,07-01-2020,10:20,Mumbai,FRAUD,27,M,1,19.20,72.90",
    "6,08-01-2020,06:15,Nowhere,BURGLARY,50,M,2,,",
]


class FakeTable:
    """Just enough of a boto3 DynamoDB Table for the calls in crimelens.db.dynamo."""

    def __init__(self, key: str = "phone"):
        self.key = key
        self.items: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    def _check(self, op: str, kwargs: Dict[str, Any]) -> None:
        self.calls.append((op, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    def put_item(self, Item):
        self._check("put_item", {"Item": Item})
        self.items[Item[self.key]] = dict(Item)
        return {}

    def get_item(self, Key):
        self._check("get_item", {"Key": Key})
        item = self.items.get(Key[self.key])
        return {"Item": dict(item)} if item else {}

    def delete_item(self, Key):
        self._check("delete_item", {"Key": Key})
        self.items.pop(Key[self.key], None)
        return {}

    def update_item(self, Key, UpdateExpression, ExpressionAttributeNames, ExpressionAttributeValues, ReturnValues=None):
        self._check("update_item", {"Key": Key, "UpdateExpression": UpdateExpression})
        item = self.items.setdefault(Key[self.key], dict(Key))
        names, values = ExpressionAttributeNames, ExpressionAttributeValues
        for name, value in re.findall(r"(#\w+) = if_not_exists\(#\w+, (:\w+)\)", UpdateExpression):
            item.setdefault(names[name], values[value])
        for name, value in re.findall(r"(#\w+) = (:\w+)", UpdateExpression):
            item[names[name]] = values[value]
        return {"Attributes": dict(item)} if ReturnValues == "ALL_NEW" else {}


class FakeSns:
    def __init__(self):
        self.published: List[Dict[str, Any]] = []
        # phone numbers that should be rejected
        self.failing: set = set()

    def publish(self, **kwargs):
        if kwargs.get("PhoneNumber") in self.failing:
            raise ClientError(
                {"Error": {"Code": "InvalidParameter", "Message": "Invalid phone number"}}, "Publish"
            )
        self.published.append(kwargs)
        return {"MessageId": f"msg-{len(self.published)}"}


@pytest.fixture
def users_table(monkeypatch):
    table = FakeTable()
    monkeypatch.setattr(dynamo, "users_table", table)
    return table


@pytest.fixture
def otps_table(monkeypatch):
    table = FakeTable()
    monkeypatch.setattr(dynamo, "otps_table", table)
    return table


@pytest.fixture
def fake_sns(monkeypatch):
    client = FakeSns()
    monkeypatch.setattr(sns_alerts, "sns", client)
    return client


@pytest.fixture
def demo_mode(monkeypatch):
    monkeypatch.setattr(config, "DEMO_MODE", True)
    monkeypatch.setattr(config, "SMS_ENABLED", False)


@pytest.fixture
def live_sms(monkeypatch):
    monkeypatch.setattr(config, "DEMO_MODE", False)
    monkeypatch.setattr(config, "SMS_ENABLED", True)


@pytest.fixture
def cities_csv(tmp_path, monkeypatch):
    path = tmp_path / "cities.csv"
    path.write_text("\n".join([CSV_HEADER, *SAMPLE_ROWS]) + "\n", encoding="utf-8")
    monkeypatch.setattr(config, "CITIES_CSV", str(path))
    return path


@pytest.fixture
def client(cities_csv, users_table, otps_table, fake_sns):
    from fastapi.testclient import TestClient
    from crimelens.main import app

    return TestClient(app)

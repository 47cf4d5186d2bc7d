"""
Tests for Record and the pymongo-backed MongoStore.
"""

import pytest
from pymongo.errors import AutoReconnect, ConfigurationError, NotPrimaryError, ServerSelectionTimeoutError

from core.store import FatalConfigurationError, MongoStore, Record, TransientStoreError


class FakeCollection:
    def __init__(self, fail_with=None):
        self.documents = []
        self.fail_with = fail_with
        self.find_args = None

    def insert_one(self, document):
        if self.fail_with:
            raise self.fail_with
        document['_id'] = len(self.documents)
        self.documents.append(document)

    def find(self, query, projection=None):
        if self.fail_with:
            raise self.fail_with
        self.find_args = (query, projection)
        return iter([{k: v for k, v in d.items() if k != '_id'} for d in self.documents])


class FakeClient:
    instances = []

    def __init__(self, uri, **kwargs):
        self.uri = uri
        self.kwargs = kwargs
        self.closed = False
        self.collection = FakeCollection()
        FakeClient.instances.append(self)

    def __getitem__(self, database_name):
        # client[database][collection] -> the single fake collection
        return {'Employees': self.collection}

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client(monkeypatch):
    FakeClient.instances = []
    monkeypatch.setattr("core.store.MongoClient", FakeClient)
    return FakeClient


class TestRecord:

    def test_for_index_is_deterministic(self):
        assert Record.for_index(7) == Record(7, "Sid7")
        assert Record.for_index(7, prefix="Emp") == Record(7, "Emp7")

    def test_document_round_trip(self):
        record = Record(3, "Sid3")
        assert record.to_document() == {'id': 3, 'name': 'Sid3'}
        assert Record.from_document({'_id': 'x', 'id': 3, 'name': 'Sid3'}) == record

    def test_to_document_returns_fresh_dict(self):
        record = Record(1, "Sid1")
        first = record.to_document()
        first['_id'] = 'set by driver'
        assert '_id' not in record.to_document()


class TestMongoStore:

    def test_insert_and_find(self, fake_client):
        store = MongoStore("mongodb://localhost:27017/?replicaSet=rs0", "SPPIT", "Employees")
        store.insert_one(Record(0, "Sid0"))
        store.insert_one(Record(1, "Sid1"))

        assert store.find_all() == [Record(0, "Sid0"), Record(1, "Sid1")]
        assert fake_client.instances[0].collection.find_args == ({}, {'_id': False})

    def test_client_settings(self, fake_client):
        MongoStore("mongodb://h:1", "SPPIT", "Employees", server_selection_timeout_ms=1234)
        client = fake_client.instances[0]
        assert client.uri == "mongodb://h:1"
        assert client.kwargs == {'serverSelectionTimeoutMS': 1234}

    @pytest.mark.parametrize("error", [
        AutoReconnect("connection reset"),
        NotPrimaryError("not primary"),
        ServerSelectionTimeoutError("no primary"),
    ])
    def test_driver_errors_become_transient(self, fake_client, error):
        store = MongoStore("mongodb://h:1", "SPPIT", "Employees")
        fake_client.instances[0].collection.fail_with = error

        with pytest.raises(TransientStoreError, match="record 5"):
            store.insert_one(Record(5, "Sid5"))
        with pytest.raises(TransientStoreError):
            store.find_all()

    def test_close_releases_client(self, fake_client):
        store = MongoStore("mongodb://h:1", "SPPIT", "Employees")
        store.close()
        assert fake_client.instances[0].closed

    @pytest.mark.parametrize("uri", ["", "   "])
    def test_empty_connection_string_is_fatal(self, fake_client, uri):
        with pytest.raises(FatalConfigurationError):
            MongoStore(uri, "SPPIT", "Employees")
        assert fake_client.instances == []

    def test_invalid_connection_string_is_fatal(self, monkeypatch):
        def bad_client(uri, **kwargs):
            raise ConfigurationError("Unknown option foo")

        monkeypatch.setattr("core.store.MongoClient", bad_client)
        with pytest.raises(FatalConfigurationError, match="Unknown option foo"):
            MongoStore("mongodb://h:1/?foo=bar", "SPPIT", "Employees")

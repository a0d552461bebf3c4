from datetime import timedelta

from pushrelay import crud_devices
from pushrelay.crud_devices import _as_utc, _query_upsert, expiry_cutoff
from pushrelay.models import Device


class TestUpsertDevice:
    def test_creates_record(self, db):
        device = crud_devices.upsert_device(db, "ABC123", "tok1")

        assert device.code == "ABC123"
        assert device.fcm_token == "tok1"
        assert device.created_at is not None

    def test_overwrites_token_without_duplicating(self, db):
        crud_devices.upsert_device(db, "ABC123", "tok1")
        device = crud_devices.upsert_device(db, "ABC123", "tok2")

        assert device.fcm_token == "tok2"
        assert db.query(Device).filter(Device.code == "ABC123").count() == 1

    def test_overwrite_keeps_created_at(self, db, add_device):
        add_device("ABC123", "tok1", age=timedelta(hours=2))
        before = _as_utc(db.query(Device).filter(Device.code == "ABC123").one().created_at)

        device = crud_devices.upsert_device(db, "ABC123", "tok2", refresh_expiry=False)

        assert _as_utc(device.created_at) == before

    def test_overwrite_with_refresh_resets_created_at(self, db, add_device):
        add_device("ABC123", "tok1", age=timedelta(hours=2))
        before = _as_utc(db.query(Device).filter(Device.code == "ABC123").one().created_at)

        device = crud_devices.upsert_device(db, "ABC123", "tok2", refresh_expiry=True)

        assert _as_utc(device.created_at) > before

    def test_overwrite_of_expired_row_starts_fresh(self, db, add_device):
        add_device("ABC123", "tok1", age=timedelta(hours=30))

        device = crud_devices.upsert_device(db, "ABC123", "tok2", refresh_expiry=False)

        assert _as_utc(device.created_at) > expiry_cutoff()
        assert crud_devices.get_device_by_code(db, "ABC123").fcm_token == "tok2"

    def test_query_upsert_for_other_dialects(self, db, add_device):
        add_device("ABC123", "tok1", age=timedelta(hours=30))
        now = expiry_cutoff() + timedelta(hours=24)

        _query_upsert(db, "ABC123", "tok2", now, expiry_cutoff(now), False)
        _query_upsert(db, "XYZ789", "tok3", now, expiry_cutoff(now), False)
        db.commit()

        assert crud_devices.get_device_by_code(db, "ABC123").fcm_token == "tok2"
        assert crud_devices.get_device_by_code(db, "XYZ789").fcm_token == "tok3"
        assert db.query(Device).count() == 2


class TestLookup:
    def test_find_missing_code(self, db):
        assert crud_devices.get_device_by_code(db, "NOPE00") is None

    def test_expired_record_is_unreadable(self, db, add_device):
        add_device("OLD001", age=timedelta(hours=24, minutes=1))
        add_device("NEW001", age=timedelta(hours=23))

        assert crud_devices.get_device_by_code(db, "OLD001") is None
        assert crud_devices.get_device_by_code(db, "NEW001") is not None

    def test_list_includes_unswept_expired_records(self, db, add_device):
        add_device("OLD001", age=timedelta(hours=48))
        add_device("AAA111", age=timedelta(hours=2))
        add_device("BBB222", age=timedelta(hours=1))

        codes = [device.code for device in crud_devices.get_all_devices(db)]

        assert codes == ["OLD001", "AAA111", "BBB222"]

    def test_lookup_uses_given_ttl(self, db, add_device):
        add_device("ABC123", age=timedelta(hours=2))

        assert crud_devices.get_device_by_code(db, "ABC123", ttl_hours=1) is None
        assert crud_devices.get_device_by_code(db, "ABC123", ttl_hours=3) is not None

    def test_expires_at_is_ttl_after_creation(self, db, add_device):
        device = add_device("ABC123")

        assert crud_devices.expires_at(device) - _as_utc(device.created_at) == timedelta(hours=24)


class TestDelete:
    def test_delete_existing(self, db, add_device):
        add_device("ABC123")

        assert crud_devices.delete_device(db, "ABC123") is True
        assert db.query(Device).count() == 0

    def test_delete_missing_is_not_an_error(self, db):
        assert crud_devices.delete_device(db, "ABC123") is False


class TestPurgeExpired:
    def test_removes_only_expired_rows(self, db, add_device):
        add_device("OLD001", age=timedelta(hours=25))
        add_device("OLD002", age=timedelta(days=3))
        add_device("NEW001", age=timedelta(hours=1))

        assert crud_devices.purge_expired_devices(db) == 2
        assert [device.code for device in db.query(Device).all()] == ["NEW001"]

    def test_nothing_to_purge(self, db, add_device):
        add_device("NEW001")

        assert crud_devices.purge_expired_devices(db) == 0


class TestPurgeWithTtl:
    def test_purge_uses_given_ttl(self, db, add_device):
        add_device("OLD001", age=timedelta(hours=2))
        add_device("NEW001")

        assert crud_devices.purge_expired_devices(db, ttl_hours=1) == 1
        assert [device.code for device in db.query(Device).all()] == ["NEW001"]

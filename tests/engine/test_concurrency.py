"""
Concurrent patches of one row.

There is no locking: the last write wins. What must hold is that a race
can lose a value but never misaligns a row or touches another field.
"""

import threading

import pytest


@pytest.mark.slow
class TestConcurrentPatches:
    def test_racing_status_patches_leave_row_intact(self, engine, provider_id):
        before = engine.get_record("Providers", provider_id).unwrap()
        barrier = threading.Barrier(8)
        errors = []

        def worker(status):
            barrier.wait()
            for _ in range(25):
                result = engine.patch_by_id(
                    "Providers", provider_id, {"credentialingStatus": status}
                )
                if result.is_err():
                    errors.append(result.error)

        threads = [
            threading.Thread(target=worker, args=("Active" if i % 2 else "Expired",))
            for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        after = engine.get_record("Providers", provider_id).unwrap()
        assert errors == []
        assert after["credentialingStatus"] in ("Active", "Expired")
        for key in ("id", "firstName", "lastName", "npi", "isActive", "address", "createdAt"):
            assert after[key] == before[key]
        assert len(engine.list_records("Providers").unwrap()) == 1

    def test_disjoint_fields_both_land(self, engine, provider_id):
        barrier = threading.Barrier(2)

        def patch(fields):
            barrier.wait()
            engine.patch_by_id("Providers", provider_id, fields).unwrap()

        threads = [
            threading.Thread(target=patch, args=({"specialty": "ENT"},)),
            threading.Thread(target=patch, args=({"email": "ada@example.com"},)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        after = engine.get_record("Providers", provider_id).unwrap()
        assert after["specialty"] == "ENT"
        assert after["email"] == "ada@example.com"

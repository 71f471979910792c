# SPDX-License-Identifier: MIT

import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest import mock

from fakes import FakeKeyring, make_quota, make_storage

from tokstat_library.core.errors import (
    AccountExistsError,
    AccountNotFoundError,
    StorageIOError,
    ValidationError,
)
from tokstat_library.core.types import Account, QuotaSnapshot
from tokstat_library.storage import AccountIndex, CredentialVault, QuotaHistoryLog, mask_secret


def _snapshot(minutes: int, tokens: int) -> QuotaSnapshot:
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return QuotaSnapshot(timestamp=base + timedelta(minutes=minutes), tokens_used=tokens)


class AccountIndexTest(unittest.TestCase):
    def test_missing_document_is_empty(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            index = AccountIndex(Path(temp_dir) / "accounts.json")
            self.assertEqual(index.list(), [])
            with self.assertRaises(AccountNotFoundError):
                index.get("nobody")

    def test_upsert_is_idempotent_and_moves_record_last(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            index = AccountIndex(Path(temp_dir) / "accounts.json")
            index.upsert(Account("a", "copilot"))
            index.upsert(Account("b", "openrouter"))
            index.upsert(Account("a", "copilot"))

            names = [account.name for account in index.list()]
            self.assertEqual(names, ["b", "a"])

    def test_document_shape_and_email_omitted(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "accounts.json"
            index = AccountIndex(path)
            index.upsert(Account("a", "copilot"))
            index.upsert(Account("b", "openrouter", email="b@example.com"))

            data = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(list(data), ["accounts"])
            self.assertNotIn("email", data["accounts"][0])
            self.assertEqual(data["accounts"][1]["email"], "b@example.com")

    def test_rename_keeps_position(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            index = AccountIndex(Path(temp_dir) / "accounts.json")
            for name in ("a", "b", "c"):
                index.upsert(Account(name, "openrouter"))
            index.rename("b", "beta")
            self.assertEqual([a.name for a in index.list()], ["a", "beta", "c"])

    def test_corrupt_document_raises_storage_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "accounts.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(StorageIOError):
                AccountIndex(path).list()


class CredentialVaultTest(unittest.TestCase):
    def test_store_get_delete(self) -> None:
        vault = CredentialVault("svc", backend=FakeKeyring())
        vault.store("a", '{"api_key": "sk-or-123"}')
        self.assertEqual(vault.get("a"), '{"api_key": "sk-or-123"}')
        vault.delete("a")
        with self.assertRaises(AccountNotFoundError):
            vault.get("a")

    def test_delete_missing_entry_is_not_an_error(self) -> None:
        vault = CredentialVault("svc", backend=FakeKeyring())
        vault.delete("never-stored")

    def test_backend_failure_maps_to_storage_error(self) -> None:
        backend = FakeKeyring()
        backend.fail_on.add(("set", "a"))
        vault = CredentialVault("svc", backend=backend)
        with self.assertRaises(StorageIOError):
            vault.store("a", "blob")

    def test_mask_secret_hides_most_of_the_value(self) -> None:
        masked = mask_secret("sk-or-v1-abcdefghijklmnop")
        self.assertTrue(masked.startswith("sk-o"))
        self.assertNotIn("abcdefghijklmnop", masked)
        self.assertEqual(mask_secret("short"), "*****")


class QuotaHistoryLogTest(unittest.TestCase):
    def test_unchanged_snapshot_is_not_appended(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            log = QuotaHistoryLog(Path(temp_dir) / "quota_history.json")
            self.assertTrue(log.append_if_changed("a", _snapshot(0, 10)))
            # Same counters, later timestamp
            self.assertFalse(log.append_if_changed("a", _snapshot(5, 10)))
            self.assertTrue(log.append_if_changed("a", _snapshot(10, 11)))
            self.assertEqual([s.tokens_used for s in log.history("a")], [10, 11])

    def test_cap_evicts_oldest_first(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            log = QuotaHistoryLog(Path(temp_dir) / "quota_history.json", max_size=3)
            for i in range(5):
                log.append_if_changed("a", _snapshot(i, i))
            self.assertEqual([s.tokens_used for s in log.history("a")], [2, 3, 4])

    def test_default_cap_is_one_hundred(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            log = QuotaHistoryLog(Path(temp_dir) / "quota_history.json")
            for i in range(101):
                log.append_if_changed("a", _snapshot(i, i))
            history = log.history("a")
            self.assertEqual(len(history), 100)
            self.assertEqual(history[0].tokens_used, 1)

    def test_rename_and_remove(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            log = QuotaHistoryLog(Path(temp_dir) / "quota_history.json")
            log.append_if_changed("a", _snapshot(0, 1))
            self.assertTrue(log.rename("a", "b"))
            self.assertEqual(log.history("a"), [])
            self.assertEqual(len(log.history("b")), 1)
            self.assertTrue(log.remove("b"))
            self.assertFalse(log.remove("b"))


class AccountStorageTest(unittest.TestCase):
    def test_save_account_twice_keeps_one_record(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = make_storage(temp_dir)
            storage.store_credentials("a", "blob")
            storage.save_account(Account("a", "openrouter"))
            storage.save_account(Account("a", "openrouter"))
            self.assertEqual([a.name for a in storage.list_accounts()], ["a"])

    def test_rename_moves_all_three_stores(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            backend = FakeKeyring()
            storage = make_storage(temp_dir, backend)
            storage.store_credentials("old", "blob")
            storage.save_account(Account("old", "copilot"))
            storage.record_snapshot("old", make_quota("copilot", tokens=5))

            updated = storage.rename_account("old", "new")

            self.assertEqual(updated.name, "new")
            self.assertEqual(storage.get_credentials("new"), "blob")
            with self.assertRaises(AccountNotFoundError):
                storage.get_credentials("old")
            self.assertEqual(len(storage.get_quota_history("new")), 1)
            self.assertEqual(storage.get_quota_history("old"), [])
            self.assertEqual([a.name for a in storage.list_accounts()], ["new"])

    def test_rename_to_same_name_is_noop(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = make_storage(temp_dir)
            storage.store_credentials("a", "blob")
            storage.save_account(Account("a", "copilot"))
            self.assertIsNone(storage.rename_account("a", "a"))
            self.assertEqual(storage.get_credentials("a"), "blob")

    def test_rename_rejects_empty_and_existing_names(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = make_storage(temp_dir)
            for name in ("a", "b"):
                storage.store_credentials(name, f"blob-{name}")
                storage.save_account(Account(name, "openrouter"))
            storage.record_snapshot("a", make_quota(cost=1.0))
            storage.record_snapshot("b", make_quota(cost=2.0))

            with self.assertRaises(ValidationError):
                storage.rename_account("a", "")
            with self.assertRaises(AccountExistsError):
                storage.rename_account("a", "b")

            self.assertEqual(storage.get_credentials("a"), "blob-a")
            self.assertEqual(storage.get_credentials("b"), "blob-b")
            self.assertEqual([a.name for a in storage.list_accounts()], ["a", "b"])
            self.assertEqual([s.cost for s in storage.get_quota_history("a")], [1.0])
            self.assertEqual([s.cost for s in storage.get_quota_history("b")], [2.0])

    def test_rename_without_credential_leaves_index_untouched(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = make_storage(temp_dir)
            storage.save_account(Account("a", "openrouter"))
            with self.assertRaises(AccountNotFoundError):
                storage.rename_account("a", "b")
            self.assertEqual([a.name for a in storage.list_accounts()], ["a"])

    def test_rename_vault_write_failure_changes_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            backend = FakeKeyring()
            storage = make_storage(temp_dir, backend)
            storage.store_credentials("a", "blob")
            storage.save_account(Account("a", "openrouter"))
            backend.fail_on.add(("set", "b"))

            with self.assertRaises(StorageIOError):
                storage.rename_account("a", "b")

            self.assertEqual([a.name for a in storage.list_accounts()], ["a"])
            self.assertEqual(storage.get_credentials("a"), "blob")
            self.assertNotIn(("tokstat-test", "b"), backend.entries)

    def test_rename_index_write_failure_rolls_back(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            backend = FakeKeyring()
            storage = make_storage(temp_dir, backend)
            storage.store_credentials("a", "blob")
            storage.save_account(Account("a", "openrouter"))

            with mock.patch.object(
                storage.index, "rename", side_effect=StorageIOError("disk full")
            ):
                with self.assertRaises(StorageIOError):
                    storage.rename_account("a", "b")

            self.assertEqual([a.name for a in storage.list_accounts()], ["a"])
            self.assertEqual(storage.get_credentials("a"), "blob")
            self.assertNotIn(("tokstat-test", "b"), backend.entries)

    def test_remove_cascades(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            backend = FakeKeyring()
            storage = make_storage(temp_dir, backend)
            storage.store_credentials("a", "blob")
            storage.save_account(Account("a", "openrouter"))
            storage.record_snapshot("a", make_quota(cost=1.0))

            storage.remove_account("a")

            self.assertEqual(storage.list_accounts(), [])
            self.assertEqual(backend.entries, {})
            self.assertEqual(storage.get_quota_history("a"), [])

    def test_remove_unknown_account_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = make_storage(temp_dir)
            with self.assertRaises(AccountNotFoundError):
                storage.remove_account("ghost")

    def test_remove_succeeds_when_history_write_fails(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = make_storage(temp_dir)
            storage.store_credentials("a", "blob")
            storage.save_account(Account("a", "openrouter"))
            storage.record_snapshot("a", make_quota(cost=1.0))

            with mock.patch(
                "tokstat_library.storage.history.write_json_document",
                side_effect=StorageIOError("read-only"),
            ):
                storage.remove_account("a")

            self.assertEqual(storage.list_accounts(), [])

    def test_record_snapshot_deduplicates(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = make_storage(temp_dir)
            self.assertTrue(storage.record_snapshot("a", make_quota(cost=2.5)))
            self.assertFalse(storage.record_snapshot("a", make_quota(cost=2.5)))
            self.assertEqual(len(storage.get_quota_history("a")), 1)


if __name__ == "__main__":
    unittest.main()

# SPDX-License-Identifier: MIT

import io
import json
import tempfile
import unittest
from unittest import mock

from rich.console import Console

from fakes import FakeGateway, make_quota, make_storage

from tokstat_app import main as cli
from tokstat_library import __version__
from tokstat_library.core.errors import UpstreamError
from tokstat_library.core.types import Account


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._temp_dir.cleanup)
        self.storage = make_storage(self._temp_dir.name)
        self.buffer = io.StringIO()
        self.console = Console(file=self.buffer, width=120, force_terminal=False)

    def add_account(self, name: str, provider: str = "openrouter") -> None:
        self.storage.store_credentials(name, '{"api_key": "sk-or-x"}')
        self.storage.save_account(Account(name, provider))

    def run_cli(self, *argv: str) -> int:
        return cli.main(
            ["--config-dir", self._temp_dir.name, *argv],
            console=self.console,
            storage=self.storage,
        )

    @property
    def output(self) -> str:
        return self.buffer.getvalue()


class ParserTest(unittest.TestCase):
    def test_defaults_to_status_report(self) -> None:
        args = cli.build_parser().parse_args([])
        self.assertIsNone(args.command)
        self.assertEqual(args.format, "fancy")

    def test_login_arguments(self) -> None:
        args = cli.build_parser().parse_args(["login", "copilot", "-n", "work"])
        self.assertEqual((args.command, args.provider, args.name), ("login", "copilot", "work"))

    def test_unknown_provider_is_rejected(self) -> None:
        with mock.patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as ctx:
                cli.build_parser().parse_args(["login", "anthropic"])
        self.assertEqual(ctx.exception.code, 2)


class CommandTest(CliTestCase):
    def test_version(self) -> None:
        self.assertEqual(self.run_cli("version"), 0)
        self.assertIn(f"tokstat {__version__}", self.output)

    def test_list_plain_and_json(self) -> None:
        self.add_account("personal")
        self.add_account("work", "copilot")

        self.assertEqual(self.run_cli("--format", "plain", "list"), 0)
        self.assertIn("personal (openrouter)\nwork (copilot)", self.output)

        self.buffer.truncate(0)
        self.buffer.seek(0)
        self.assertEqual(self.run_cli("--format", "json", "list"), 0)
        names = [entry["name"] for entry in json.loads(self.output)]
        self.assertEqual(names, ["personal", "work"])

    def test_remove(self) -> None:
        self.add_account("personal")
        self.assertEqual(self.run_cli("remove", "personal"), 0)
        self.assertEqual(self.storage.list_accounts(), [])

    def test_remove_unknown_account_is_an_error(self) -> None:
        self.assertEqual(self.run_cli("remove", "ghost"), 1)
        self.assertIn("Account 'ghost' not found", self.output)

    def test_bracketed_names_are_printed_literally(self) -> None:
        self.add_account("x[/]")

        self.assertEqual(self.run_cli("list"), 0)
        self.assertIn("x[/]", self.output)
        self.assertEqual(self.run_cli("remove", "x[/]"), 0)
        self.assertIn("Removed account 'x[/]'", self.output)
        self.assertEqual(self.run_cli("remove", "[bold]y"), 1)
        self.assertIn("Account '[bold]y' not found", self.output)

    def test_status_report_records_history(self) -> None:
        self.add_account("personal")
        self.add_account("work", "copilot")
        gateway = FakeGateway(
            {"personal": make_quota(cost=1.25), "work": UpstreamError("HTTP 500", status=500)}
        )
        with mock.patch.object(cli, "QuotaGateway", return_value=gateway):
            self.assertEqual(self.run_cli("--format", "plain"), 0)

        self.assertIn("  Cost: $1.25", self.output)
        self.assertIn("  Error: HTTP 500", self.output)
        self.assertEqual(len(self.storage.get_quota_history("personal")), 1)

    def test_refresh_single_account_failure_exits_nonzero(self) -> None:
        self.add_account("work", "copilot")
        gateway = FakeGateway({"work": UpstreamError("HTTP 500", status=500)})
        with mock.patch.object(cli, "QuotaGateway", return_value=gateway):
            self.assertEqual(self.run_cli("--format", "plain", "refresh", "work"), 1)
        self.assertEqual(gateway.calls, ["work"])

    def test_refresh_unknown_account(self) -> None:
        self.assertEqual(self.run_cli("refresh", "ghost"), 1)

    def test_history_json(self) -> None:
        self.add_account("personal")
        self.storage.record_snapshot("personal", make_quota(cost=1.0))
        self.storage.record_snapshot("personal", make_quota(cost=2.0))

        self.assertEqual(self.run_cli("--format", "json", "history", "personal"), 0)
        costs = [entry["cost"] for entry in json.loads(self.output)]
        self.assertEqual(costs, [1.0, 2.0])

    def test_login_uses_default_name(self) -> None:
        calls = []

        async def fake_login(storage, account_name, console=None):
            calls.append(account_name)
            storage.store_credentials(account_name, "{}")
            storage.save_account(Account(account_name, "openrouter"))

        with mock.patch.object(cli, "get_login_flow", return_value=fake_login):
            with mock.patch.object(cli.time, "time", return_value=1700000000.5):
                self.assertEqual(self.run_cli("login", "openrouter"), 0)

        self.assertEqual(calls, ["openrouter_1700000000"])
        self.assertIn("openrouter_1700000000", self.output)

    def test_dashboard_starts_without_accounts(self) -> None:
        with mock.patch.object(cli.dashboard, "run", new=mock.AsyncMock()) as run:
            self.assertEqual(self.run_cli("dashboard"), 0)
        args, kwargs = run.call_args
        self.assertIs(args[0], self.storage)
        self.assertEqual(args[1], [])
        self.assertEqual(kwargs["refresh_interval"], 60)


if __name__ == "__main__":
    unittest.main()

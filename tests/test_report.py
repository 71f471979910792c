# SPDX-License-Identifier: MIT

import io
import json
import unittest

from rich.console import Console

from fakes import make_quota

from tokstat_app.report import print_report, render_json, render_plain, render_report
from tokstat_library.core.errors import UnauthorizedError
from tokstat_library.core.types import Account, TokenLimits


def _results():
    quota = make_quota(cost=2.5, limits=TokenLimits(max_cost=10.0))
    return [
        (Account("personal", "openrouter"), quota),
        (Account("work", "copilot"), UnauthorizedError("Copilot rejected the credentials")),
    ]


class ReportTest(unittest.TestCase):
    def test_plain_report_has_one_line_per_metric(self) -> None:
        text = render_plain(_results())
        self.assertIn("personal (openrouter)", text)
        self.assertIn("  Cost: $2.50 / $10.00 (25.0%)", text)
        self.assertIn("  Error: Copilot rejected the credentials", text)

    def test_json_report(self) -> None:
        records = json.loads(render_json(_results()))
        self.assertEqual(records[0]["name"], "personal")
        self.assertEqual(records[0]["quota"]["usage"]["cost"], 2.5)
        self.assertEqual(records[1]["error"], "Copilot rejected the credentials")
        self.assertNotIn("quota", records[1])

    def test_empty_report(self) -> None:
        self.assertEqual(render_plain([]), "No accounts configured.")
        self.assertEqual(json.loads(render_json([])), [])

    def test_fancy_report_renders(self) -> None:
        buffer = io.StringIO()
        console = Console(file=buffer, width=100, force_terminal=False)
        print_report(console, _results(), "fancy")
        output = buffer.getvalue()
        self.assertIn("personal (openrouter)", output)
        self.assertIn("✗ Copilot rejected the credentials", output)

    def test_fancy_report_prints_bracketed_names_literally(self) -> None:
        results = [
            (Account("x[/]", "openrouter"), make_quota(cost=1.0)),
            (Account("[bold]y", "copilot"), UnauthorizedError("[red]denied")),
        ]
        buffer = io.StringIO()
        console = Console(file=buffer, width=100, force_terminal=False)
        print_report(console, results, "fancy")
        output = buffer.getvalue()
        self.assertIn("x[/] (openrouter)", output)
        self.assertIn("[bold]y (copilot)", output)

    def test_unknown_format(self) -> None:
        with self.assertRaises(ValueError):
            render_report(_results(), "xml")


if __name__ == "__main__":
    unittest.main()

"""
Developer CLI Tests
===================
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from feedrewrite.cli import cli, load_rules
from feedrewrite.replacer.rules import Rule


RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Feed</title>
    <link>https://example.com/</link>
    <item>
      <title>First post</title>
      <link>https://example.com/1</link>
      <description>&lt;p&gt;Buy now! Great article&lt;/p&gt;</description>
      <pubDate>Tue, 14 Nov 2023 22:13:20 GMT</pubDate>
    </item>
    <item>
      <title>Second post</title>
      <link>https://example.com/2</link>
      <description>&lt;p&gt;Nothing to see&lt;/p&gt;</description>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def runner():
    with patch("feedrewrite.cli.configure_application_logging"):
        yield CliRunner()


class TestLoadRules:
    """Reading rule files."""

    def test_plain_list(self):
        assert load_rules([{"search_regex": "a", "replace_string": "b"}], "1") == [Rule("a", "b")]

    def test_stored_configuration(self):
        data = {"replacements": {"2": [{"search_regex": "x"}]}}
        assert load_rules(data, "2") == [Rule("x", "")]
        assert load_rules(data, "1") == []


class TestCommands:
    """Invoking the commands."""

    def test_help(self, runner):
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "test-rules" in result.output

    def test_check_config(self, runner):
        result = runner.invoke(cli, ["check-config"])
        assert result.exit_code == 0
        assert "Configuration loaded" in result.output

    def test_test_rules(self, runner, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text(json.dumps([
            {"search_regex": "#<aside>.*?</aside>#s", "replace_string": ""},
            {"search_regex": "(", "replace_string": "x"},
            {"search_regex": "Source", "replace_string": "Source: {url}"},
        ]))
        html_file = tmp_path / "page.html"
        html_file.write_text("<p>Text</p><aside>\nad</aside><p>Source</p>")

        result = runner.invoke(cli, ["test-rules", str(rules_file), str(html_file), "--url", "http://x/1"])

        assert result.exit_code == 0, result.output
        assert "2 of 3 rule(s) changed the content, 1 skipped or reverted" in result.output
        assert "<p>Text</p><p>Source: http://x/1</p>" in result.output

    def test_test_rules_without_rules(self, runner, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text(json.dumps({"replacements": {}}))
        html_file = tmp_path / "page.html"
        html_file.write_text("<p>x</p>")

        result = runner.invoke(cli, ["test-rules", str(rules_file), str(html_file)])

        assert result.exit_code == 0
        assert "No rules found" in result.output

    def test_bad_rules_file(self, runner, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text("{not json")
        html_file = tmp_path / "page.html"
        html_file.write_text("<p>x</p>")

        result = runner.invoke(cli, ["test-rules", str(rules_file), str(html_file)])
        assert result.exit_code != 0

    def test_preview(self, runner, tmp_path):
        feed_file = tmp_path / "feed.xml"
        feed_file.write_text(RSS)
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({
            "replacer": {"replacements": {"1": [{"search_regex": "Buy now! ", "replace_string": ""}]}},
        }))

        result = runner.invoke(
            cli,
            ["preview", str(feed_file), str(config_file), "--plugin", "replacer", "--show-content"],
        )

        assert result.exit_code == 0, result.output
        assert "Example Feed" in result.output
        assert "<p>Great article</p>" in result.output
        assert "Buy now" not in result.output

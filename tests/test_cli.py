"""
Tests for CLI command processing and argument handling

Tests cover:
- Argument parsing
- compose, favourite, templates and clear-cache commands
- Error reporting and exit codes
"""
import json

import pytest

from letterpress.cli import main, setup_argument_parser
from letterpress.utils.console import get_buffer_console


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.json"


def run_cli(config_path, *argv):
    console, buffer = get_buffer_console(width=200)
    code = main(["--config", str(config_path), *argv], console=console)
    return code, buffer.getvalue()


class TestArgumentParsing:
    """Tests for the argument parser"""

    def test_compose_arguments(self):
        parser = setup_argument_parser()
        args = parser.parse_args(
            ["compose", "--opening", "Hi", "--recipient", "Ada", "--template", "welcome", "--html"]
        )

        assert args.command == "compose"
        assert args.opening == "Hi"
        assert args.recipient == "Ada"
        assert args.template == "welcome"
        assert args.html is True
        assert args.closing is None
        assert args.data_dir is None

    def test_body_sources_are_exclusive(self):
        parser = setup_argument_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["compose", "--body", "x", "--template", "welcome"])

    def test_command_is_required(self):
        parser = setup_argument_parser()
        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_favourite_requires_name(self):
        parser = setup_argument_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["favourite"])


class TestComposeCommand:
    """Tests for the compose command"""

    def test_compose_plain(self, config_path, data_dir):
        code, output = run_cli(
            config_path, "compose", "--data-dir", str(data_dir),
            "--opening", "Hello", "--recipient", "Ada",
            "--closing", "Best", "--profile", "Jane", "--body", "See attached.",
        )

        assert code == 0
        assert "Hello Ada,\n\nSee attached.\n\nBest,\n\nJane Doe" in output
        assert "Engineer, Platform" in output

    def test_compose_html_includes_signature_image(self, config_path, data_dir):
        code, output = run_cli(
            config_path, "compose", "--data-dir", str(data_dir),
            "--profile", "Jane", "--template", "welcome", "--html",
        )

        assert code == 0
        assert "<div>Welcome aboard.</div>" in output
        assert "<strong>Jane Doe</strong>" in output
        assert 'src="data:image/png;base64,' in output

    def test_compose_remembers_selections(self, config_path, data_dir):
        run_cli(
            config_path, "compose", "--data-dir", str(data_dir),
            "--opening", "Hi", "--closing", "Cheers", "--profile", "Jane",
        )

        cache = json.loads((data_dir / "data" / "cache.json").read_text())
        assert cache["email_view_last_selected_salutation"] == "Hi"
        assert cache["email_view_last_selected_valediction"] == "Cheers"
        assert cache["email_view_last_selected_signature"] == "Jane"

        code, output = run_cli(config_path, "compose", "--data-dir", str(data_dir))
        assert code == 0
        assert output.startswith("Hi,")
        assert "Cheers," in output
        assert "Jane Doe" in output

    def test_compose_body_file(self, config_path, data_dir, tmp_path):
        body_file = tmp_path / "body.txt"
        body_file.write_text("Line one\nLine two", encoding="utf-8")

        code, output = run_cli(
            config_path, "compose", "--data-dir", str(data_dir),
            "--opening", "", "--closing", "", "--profile", "",
            "--body-file", str(body_file),
        )

        assert code == 0
        assert output.strip() == "Line one\nLine two"

    def test_compose_unknown_template(self, config_path, data_dir):
        code, output = run_cli(
            config_path, "compose", "--data-dir", str(data_dir), "--template", "missing",
        )

        assert code == 1
        assert "Template 'missing' not found" in output


class TestFavouriteCommand:
    """Tests for the favourite command"""

    def test_toggle_on_and_off(self, config_path, data_dir):
        favourites_file = data_dir / "data" / "favourites.json"

        code, output = run_cli(config_path, "favourite", "--data-dir", str(data_dir), "welcome")
        assert code == 0
        assert "Added “welcome” to favourites" in output
        assert json.loads(favourites_file.read_text()) == ["welcome"]

        code, output = run_cli(config_path, "favourite", "--data-dir", str(data_dir), "welcome")
        assert code == 0
        assert "Removed “welcome” from favourites" in output
        assert json.loads(favourites_file.read_text()) == []

    def test_unknown_template_is_rejected(self, config_path, data_dir):
        favourites_file = data_dir / "data" / "favourites.json"

        code, output = run_cli(config_path, "favourite", "--data-dir", str(data_dir), "missing")

        assert code == 1
        assert "Template 'missing' not found" in output
        assert not favourites_file.exists()

    def test_legacy_map_is_rewritten_as_list(self, config_path, data_dir):
        favourites_file = data_dir / "data" / "favourites.json"
        favourites_file.write_text(json.dumps({"update": True, "welcome": False}))

        code, _ = run_cli(config_path, "favourite", "--data-dir", str(data_dir), "welcome")

        assert code == 0
        assert json.loads(favourites_file.read_text()) == ["update", "welcome"]


class TestTemplatesCommand:
    """Tests for the templates command"""

    def test_favourites_listed_first(self, config_path, data_dir):
        (data_dir / "data" / "favourites.json").write_text(json.dumps(["welcome"]))

        code, output = run_cli(config_path, "templates", "--data-dir", str(data_dir))

        assert code == 0
        assert output.index("welcome") < output.index("update")

    def test_search_filters_by_content(self, config_path, data_dir):
        code, output = run_cli(
            config_path, "templates", "--data-dir", str(data_dir), "--search", "aboard",
        )

        assert code == 0
        assert "welcome" in output
        assert "update" not in output


class TestClearCacheCommand:
    """Tests for the clear-cache command"""

    def test_removes_cache_file(self, config_path, data_dir):
        cache_file = data_dir / "data" / "cache.json"
        cache_file.write_text(json.dumps({"email_view_last_selected_salutation": "Hi"}))

        code, output = run_cli(config_path, "clear-cache", "--data-dir", str(data_dir))

        assert code == 0
        assert "Cache cleared" in output
        assert not cache_file.exists()


class TestConfiguration:
    """Tests for config handling at startup"""

    def test_creates_default_config(self, config_path, data_dir):
        code, _ = run_cli(config_path, "templates", "--data-dir", str(data_dir))

        assert code == 0
        assert config_path.exists()

    def test_invalid_config_exits_with_error(self, config_path, data_dir):
        config_path.write_text("{not json")

        code, output = run_cli(config_path, "templates", "--data-dir", str(data_dir))

        assert code == 1
        assert "Configuration error" in output

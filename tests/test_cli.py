from pathlib import Path

from click.testing import CliRunner

from orgsite import __version__
from orgsite.cli import cli


def create_site(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "posts").mkdir(parents=True)
    (root / "templates").mkdir()
    (root / "posts" / "hello.org").write_text("#+TITLE: Hello\n\nWorld\n", encoding="utf-8")
    (root / "templates" / "page.html").write_text(
        "<h1>{{ post.title }}</h1>{{ post.html }}", encoding="utf-8"
    )
    return root


def test_cli_build_writes_pages(tmp_path):
    root = create_site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(
        cli, ["build", "--base-dir", str(root), "--template", "page.html"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert "Wrote 1 pages" in result.output
    assert (root / "output" / "hello.html").read_text(encoding="utf-8") == (
        "<h1>Hello</h1><p>World</p>\n"
    )


def test_cli_build_options(tmp_path):
    root = create_site(tmp_path)
    (root / "posts" / "notes.txt").write_text("#+TITLE: Notes\n", encoding="utf-8")
    layouts = tmp_path / "layouts"
    layouts.mkdir()
    (layouts / "plain.html").write_text("{{ post.slug }}", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "build",
            "--base-dir",
            str(root),
            "--template",
            "plain.html",
            "--template-dir",
            str(layouts),
            "--input-pattern",
            r"\.(org|txt)$",
            "--input-exclude",
            "hello",
            "--output",
            "public/{{ slug }}.html",
        ],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert (root / "public" / "notes.html").read_text(encoding="utf-8") == "notes"
    assert not (root / "public" / "hello.html").exists()


def test_cli_uses_current_directory(tmp_path, monkeypatch):
    root = create_site(tmp_path)
    monkeypatch.chdir(root)
    result = CliRunner().invoke(cli, ["build", "--template", "page.html"])
    assert result.exit_code == 0
    assert (root / "output" / "hello.html").exists()


def test_cli_reads_config_file(tmp_path):
    root = create_site(tmp_path)
    (root / "orgsite.yaml").write_text("template: page.html\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["build", "--base-dir", str(root)])
    assert result.exit_code == 0
    assert (root / "output" / "hello.html").exists()


def test_cli_reports_missing_template(tmp_path):
    root = create_site(tmp_path)
    result = CliRunner().invoke(cli, ["build", "--base-dir", str(root), "--template", "nope.html"])
    assert result.exit_code == 1
    assert "Template not found" in result.output
    assert "nope.html" in result.output
    assert not (root / "output").exists()


def test_cli_reports_template_syntax_error(tmp_path):
    root = create_site(tmp_path)
    (root / "templates" / "bad.html").write_text("line one\n{% if %}", encoding="utf-8")
    result = CliRunner().invoke(cli, ["build", "--base-dir", str(root), "--template", "bad.html"])
    assert result.exit_code == 1
    assert "Template syntax error" in result.output
    assert "Line: 2" in result.output


def test_cli_reports_conversion_error(tmp_path):
    root = create_site(tmp_path)
    (root / "posts" / "broken.org").write_text("#+BEGIN_SRC\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["build", "--base-dir", str(root), "--template", "page.html"])
    assert result.exit_code == 1
    assert "Conversion failed" in result.output


def test_cli_reports_missing_template_option(tmp_path):
    root = create_site(tmp_path)
    result = CliRunner().invoke(cli, ["build", "--base-dir", str(root)])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_cli_verbose_logs_written_files(tmp_path, caplog):
    root = create_site(tmp_path)
    result = CliRunner().invoke(
        cli, ["build", "--base-dir", str(root), "--template", "page.html", "--verbose"]
    )
    assert result.exit_code == 0
    assert "hello.html" in caplog.text


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_module_main_entrypoint():
    from orgsite.__main__ import main

    assert callable(main)


def test_main_invokes_cli(monkeypatch):
    import orgsite.cli as cli_mod

    called = {}

    def fake_cli():
        called["ran"] = True

    monkeypatch.setattr(cli_mod, "cli", fake_cli)
    cli_mod.main()
    assert called["ran"]

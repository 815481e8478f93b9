import pytest
from aioresponses import aioresponses
from typer.testing import CliRunner

from helpers import (
    APACHE_TEXT,
    APACHE_URL,
    GUAVA_LISTING,
    GUAVA_MANIFEST,
    NETTY_LISTING,
    NETTY_MANIFEST,
    FakeGradle,
)
from license_probe.cli import app
from license_probe.sources import get_source

runner = CliRunner()


@pytest.fixture
def mock_http():
    """Mock aiohttp requests."""
    with aioresponses() as m:
        m.get(APACHE_URL, status=200, body=APACHE_TEXT, repeat=True)
        yield m


@pytest.fixture
def fake_gradle(mocker):
    """Route the CLI's sources through a FakeGradle executor."""
    fake = FakeGradle(listing=NETTY_LISTING, manifest=NETTY_MANIFEST)
    mocker.patch(
        "license_probe.cli.get_source",
        side_effect=lambda config: get_source(config, executor=fake),
    )
    return fake


def test_list_command(single_project, fake_gradle):
    """Test listing dependencies without resolving licenses."""
    result = runner.invoke(app, ["list", "--source-path", str(single_project)])

    assert result.exit_code == 0
    assert "io.netty:netty-all" in result.stdout
    assert "4.1.33.Final" in result.stdout
    assert "junit" not in result.stdout
    assert "Found 1 dependencies" in result.stdout
    assert fake_gradle.tasks == [":printDependencies"]


def test_list_command_with_licenses(single_project, fake_gradle, mock_http):
    """Test listing dependencies together with their license types."""
    result = runner.invoke(
        app, ["list", "--source-path", str(single_project), "--licenses"]
    )

    assert result.exit_code == 0
    assert "apache-2.0" in result.stdout
    assert fake_gradle.tasks == [":printDependencies", ":generateLicenseReport"]


def test_list_subproject(multi_project, fake_gradle):
    """Test listing a subproject of a multi-project build."""
    fake_gradle.listing = GUAVA_LISTING

    result = runner.invoke(
        app,
        [
            "list",
            "--source-path",
            str(multi_project / "lib"),
            "--root",
            str(multi_project),
            "-c",
            "runtimeClasspath",
        ],
    )

    assert result.exit_code == 0
    assert "com.google.guava:guava" in result.stdout
    assert "junit-jupiter-engine" not in result.stdout
    assert fake_gradle.tasks == [":lib:printDependencies"]


def test_list_without_build_tool(tmp_path, fake_gradle):
    """Test that a directory without a build descriptor is an error."""
    result = runner.invoke(app, ["list", "--source-path", str(tmp_path)])

    assert result.exit_code == 1
    assert "No supported build tool" in result.output
    assert fake_gradle.calls == []


def test_list_reports_gradle_failure(single_project, fake_gradle):
    """Test that a failing Gradle invocation exits with an error."""
    fake_gradle.fail_tasks = {"printDependencies"}

    result = runner.invoke(app, ["list", "--source-path", str(single_project)])

    assert result.exit_code == 1
    assert "exited with status 1" in result.output


def test_list_rejects_invalid_configuration(single_project, fake_gradle):
    """Test that malformed configuration names are rejected before scanning."""
    result = runner.invoke(
        app, ["list", "--source-path", str(single_project), "-c", "runtime classpath"]
    )

    assert result.exit_code == 1
    assert "Error" in result.output
    assert fake_gradle.calls == []


def test_check_command_with_forbidden_license(single_project, fake_gradle, mock_http):
    """Test the check command with a forbidden license."""
    result = runner.invoke(
        app, ["check", "--source-path", str(single_project), "--forbidden", "Apache-2.0"]
    )

    assert result.exit_code == 1
    assert "Violations" in result.stdout
    assert "io.netty:netty-all:4.1.33.Final: apache-2.0" in result.stdout


def test_check_command_with_allowed_license(single_project, fake_gradle, mock_http):
    """Test the check command with an allowed license."""
    fake_gradle.listing = GUAVA_LISTING
    fake_gradle.manifest = GUAVA_MANIFEST

    result = runner.invoke(
        app, ["check", "--source-path", str(single_project), "--allowed", "apache-2.0,mit"]
    )

    assert result.exit_code == 0
    assert "All 2 dependencies are compliant" in result.stdout


def test_check_command_reports_unknown_licenses(single_project, fake_gradle):
    """Test that unresolvable licenses are listed but are not violations."""
    fake_gradle.fail_tasks = {"generateLicenseReport"}

    result = runner.invoke(
        app, ["check", "--source-path", str(single_project), "--allowed", "mit"]
    )

    assert result.exit_code == 0
    assert "Unknown licenses (1)" in result.stdout
    assert "io.netty:netty-all" in result.stdout


def test_check_requires_a_list(single_project, fake_gradle):
    """Test that check needs either --forbidden or --allowed."""
    result = runner.invoke(app, ["check", "--source-path", str(single_project)])

    assert result.exit_code == 1
    assert "Must specify" in result.output


def test_check_rejects_both_lists(single_project, fake_gradle):
    """Test that --forbidden and --allowed are mutually exclusive."""
    result = runner.invoke(
        app,
        [
            "check",
            "--source-path",
            str(single_project),
            "--forbidden",
            "gpl-3.0",
            "--allowed",
            "mit",
        ],
    )

    assert result.exit_code == 1
    assert "Cannot specify both" in result.output

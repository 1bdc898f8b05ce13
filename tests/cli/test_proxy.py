"""
Unit tests for launcher argument parsing and proxy dispatch.

The proxied binary is never executed: ``subprocess.run`` is patched and the
recorded command line and environment are inspected instead.
"""

import logging
import subprocess
from unittest.mock import patch

import pytest
import requests
import responses

from tests.fixtures.releases import (
    NIGHTLY_TARBALL_URL,
    NIGHTLY_VERSION,
    STABLE_TARBALL_URL,
    ZLS_BINARY_URL,
)
from ziege.cli.context import AppContext
from ziege.cli.proxy import (
    LauncherArguments,
    ProxyDispatcher,
    ProxyMode,
    mode_from_executable,
    parse_launcher_arguments,
    partition_arguments,
    run_proxy,
    select_mode,
)
from ziege.config.settings import Settings
from ziege.core.exceptions import LauncherArgumentError, ProxyExecutionError
from ziege.toolchain.release_index import INDEX_FILENAME
from ziege.toolchain.resolver import PIN_FILENAME, VERSION_ENV_VAR, LauncherOverrides


@pytest.fixture(autouse=True)
def reset_root_logging():
    """run_proxy() reconfigures the root logger; undo it after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)


@pytest.fixture
def make_context(locations, linux_platform, project_dir):
    def _make(environ=None):
        return AppContext(
            locations=locations,
            settings=Settings(),
            platform=linux_platform,
            session=requests.Session(),
            working_dir=project_dir,
            environ={} if environ is None else environ,
        )

    return _make


@pytest.fixture
def mock_run():
    with patch("ziege.cli.proxy.subprocess.run") as run:
        run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
        yield run


class TestPartitionArguments:
    def test_splits_launcher_arguments(self):
        launcher, forwarded = partition_arguments(
            ["build", "+use-version=0.12.0", "-Doptimize=ReleaseFast", "+zig"]
        )

        assert launcher == ["+use-version=0.12.0", "+zig"]
        assert forwarded == ["build", "-Doptimize=ReleaseFast"]

    def test_no_launcher_arguments(self):
        assert partition_arguments(["version"]) == ([], ["version"])


class TestParseLauncherArguments:
    """Test ``+`` launcher argument parsing."""

    def test_use_version(self):
        parsed = parse_launcher_arguments(["+use-version=0.12.0"])

        assert parsed.overrides == LauncherOverrides(use_version="0.12.0")
        assert parsed.mode is None

    def test_set_version_and_mode(self):
        parsed = parse_launcher_arguments(["+set-version=master", "+zls"])

        assert parsed.overrides.set_version == "master"
        assert parsed.mode is ProxyMode.ZLS

    def test_empty(self):
        assert parse_launcher_arguments([]) == LauncherArguments()

    @pytest.mark.parametrize("token", ["+use-version", "+use-version=", "+set-version"])
    def test_missing_value(self, token):
        with pytest.raises(LauncherArgumentError, match="requires a value"):
            parse_launcher_arguments([token])

    def test_conflicting_modes(self):
        with pytest.raises(LauncherArgumentError, match="Conflicting"):
            parse_launcher_arguments(["+zig", "+zls"])

    def test_repeated_mode_is_fine(self):
        assert parse_launcher_arguments(["+zig", "+zig"]).mode is ProxyMode.ZIG

    @pytest.mark.parametrize("token", ["+frobnicate", "+zig=1", "+"])
    def test_unknown_token(self, token):
        with pytest.raises(LauncherArgumentError, match="Unknown launcher argument"):
            parse_launcher_arguments([token])


class TestModeSelection:
    @pytest.mark.parametrize(
        "executable,expected",
        [
            ("zig", ProxyMode.ZIG),
            ("/usr/local/bin/zls", ProxyMode.ZLS),
            ("ZIG.EXE", ProxyMode.ZIG),
            ("zls.exe", ProxyMode.ZLS),
            ("ziege", ProxyMode.MANAGEMENT),
            ("/opt/bin/zig-cc", ProxyMode.MANAGEMENT),
        ],
    )
    def test_mode_from_executable(self, executable, expected):
        assert mode_from_executable(executable) is expected

    def test_explicit_mode_wins(self):
        launcher = LauncherArguments(mode=ProxyMode.ZLS)

        assert select_mode("zig", launcher) is ProxyMode.ZLS

    def test_falls_back_to_executable(self):
        assert select_mode("zig", LauncherArguments()) is ProxyMode.ZIG

    def test_management_has_no_family(self):
        assert ProxyMode.MANAGEMENT.family is None


class TestProxyDispatcher:
    """Test resolve, install and spawn."""

    def test_runs_pinned_binary(self, make_context, install_fake_toolchain, mock_run):
        root = install_fake_toolchain("0.12.0")
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=3)
        context = make_context({VERSION_ENV_VAR: "0.12.0", "PATH": "/usr/bin"})

        code = ProxyDispatcher(context).dispatch(
            ProxyMode.ZIG, ["build", "-Doptimize=ReleaseFast"]
        )

        assert code == 3
        command = mock_run.call_args.args[0]
        env = mock_run.call_args.kwargs["env"]
        assert command == [str(root / "zig"), "build", "-Doptimize=ReleaseFast"]
        assert env[VERSION_ENV_VAR] == "0.12.0"
        assert env["PATH"] == "/usr/bin"

    def test_use_version_override(
        self, make_context, install_fake_toolchain, mock_run, project_dir
    ):
        install_fake_toolchain("0.12.0")
        root = install_fake_toolchain("0.11.0")
        (project_dir / PIN_FILENAME).write_text("0.12.0")

        ProxyDispatcher(make_context()).dispatch(
            ProxyMode.ZIG, [], LauncherOverrides(use_version="0.11.0")
        )

        assert mock_run.call_args.args[0] == [str(root / "zig")]
        assert mock_run.call_args.kwargs["env"][VERSION_ENV_VAR] == "0.11.0"
        assert (project_dir / PIN_FILENAME).read_text() == "0.12.0"

    def test_zls_mode_runs_zls(self, make_context, install_fake_toolchain, mock_run):
        root = install_fake_toolchain("0.12.0", with_zls=True)
        context = make_context({VERSION_ENV_VAR: "0.12.0"})

        ProxyDispatcher(context).dispatch(ProxyMode.ZLS, ["--version"])

        assert mock_run.call_args.args[0] == [str(root / "zls"), "--version"]

    def test_missing_zls_is_an_error(self, make_context, install_fake_toolchain, mock_run):
        install_fake_toolchain("0.12.0")
        context = make_context({VERSION_ENV_VAR: "0.12.0"})

        with pytest.raises(ProxyExecutionError, match="zls is not available"):
            ProxyDispatcher(context).dispatch(ProxyMode.ZLS, [])

        mock_run.assert_not_called()

    def test_terminated_by_signal(self, make_context, install_fake_toolchain, mock_run):
        install_fake_toolchain("0.12.0")
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=-9)
        context = make_context({VERSION_ENV_VAR: "0.12.0"})

        with pytest.raises(ProxyExecutionError, match="terminated by signal 9"):
            ProxyDispatcher(context).dispatch(ProxyMode.ZIG, [])

    def test_spawn_failure(self, make_context, install_fake_toolchain, mock_run):
        install_fake_toolchain("0.12.0")
        mock_run.side_effect = OSError("Exec format error")
        context = make_context({VERSION_ENV_VAR: "0.12.0"})

        with pytest.raises(ProxyExecutionError, match="Exec format error"):
            ProxyDispatcher(context).dispatch(ProxyMode.ZIG, [])

    def test_management_mode_rejected(self, make_context):
        with pytest.raises(ValueError):
            ProxyDispatcher(make_context()).dispatch(ProxyMode.MANAGEMENT, [])

    @responses.activate
    def test_empty_directory_installs_and_pins_nightly(
        self,
        make_context,
        locations,
        project_dir,
        register_indexes,
        nightly_archive,
        mock_run,
    ):
        """Test first use in a fresh directory: pin nightly, install, run."""
        register_indexes()
        responses.add(responses.GET, NIGHTLY_TARBALL_URL, body=nightly_archive)
        responses.add(responses.GET, ZLS_BINARY_URL, body=b"zls binary")

        code = ProxyDispatcher(make_context()).dispatch(ProxyMode.ZIG, ["version"])

        root = locations.zig_root(NIGHTLY_VERSION)
        assert code == 0
        assert (project_dir / PIN_FILENAME).read_bytes() == NIGHTLY_VERSION.encode()
        assert (root / "zig").exists()
        assert (root / "zls").exists()
        assert (locations.zig_pkgs / INDEX_FILENAME).exists()
        assert (locations.zls_pkgs / INDEX_FILENAME).exists()
        assert mock_run.call_args.args[0] == [str(root / "zig"), "version"]

    @responses.activate
    def test_set_version_installs_and_pins(
        self,
        make_context,
        locations,
        project_dir,
        register_indexes,
        stable_archive,
        mock_run,
    ):
        register_indexes()
        responses.add(responses.GET, STABLE_TARBALL_URL, body=stable_archive)

        ProxyDispatcher(make_context()).dispatch(
            ProxyMode.ZIG, [], LauncherOverrides(set_version="0.12.0")
        )

        assert (project_dir / PIN_FILENAME).read_text() == "0.12.0"
        assert (locations.zig_root("0.12.0") / "zig").exists()


class TestRunProxy:
    """Test exit status mapping of the proxy entry point."""

    def test_returns_child_exit_code(self, make_context, install_fake_toolchain, mock_run):
        install_fake_toolchain("0.12.0")
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=42)

        code = run_proxy(
            ProxyMode.ZIG, [], context=make_context({VERSION_ENV_VAR: "0.12.0"})
        )

        assert code == 42

    def test_failure_reported_on_stderr(
        self, make_context, install_fake_toolchain, mock_run, capsys
    ):
        install_fake_toolchain("0.12.0")

        code = run_proxy(
            ProxyMode.ZLS, [], context=make_context({VERSION_ENV_VAR: "0.12.0"})
        )

        assert code == 1
        assert "ERROR: zls proxy failed" in capsys.readouterr().err

    def test_invalid_version_reported(self, make_context, mock_run, capsys):
        code = run_proxy(
            ProxyMode.ZIG,
            [],
            LauncherOverrides(use_version="../escape"),
            context=make_context(),
        )

        assert code == 1
        assert "Invalid Zig version" in capsys.readouterr().err
        mock_run.assert_not_called()

    @responses.activate
    def test_unwritable_index_cache_reported(
        self, make_context, register_indexes, project_dir, mock_run, capsys
    ):
        """Test an OS error while caching the index exits 1 with a message."""
        register_indexes()

        with patch(
            "ziege.toolchain.release_index.atomic_write",
            side_effect=PermissionError("read-only file system"),
        ):
            code = run_proxy(ProxyMode.ZIG, [], context=make_context())

        assert code == 1
        err = capsys.readouterr().err
        assert "ERROR: zig proxy failed" in err
        assert "read-only file system" in err
        assert not (project_dir / PIN_FILENAME).exists()
        mock_run.assert_not_called()

    def test_unexpected_error_reported(self, make_context, capsys):
        with patch.object(
            ProxyDispatcher, "dispatch", side_effect=RuntimeError("boom")
        ):
            code = run_proxy(ProxyMode.ZIG, [], context=make_context())

        assert code == 1
        assert "ERROR: zig proxy failed" in capsys.readouterr().err

    @responses.activate
    def test_failed_zls_download_leaves_no_toolchain(
        self, make_context, locations, register_indexes, nightly_archive, mock_run
    ):
        register_indexes()
        responses.add(responses.GET, NIGHTLY_TARBALL_URL, body=nightly_archive)
        responses.add(responses.GET, ZLS_BINARY_URL, status=500)

        code = run_proxy(ProxyMode.ZLS, [], context=make_context())

        assert code == 1
        assert not locations.zig_root(NIGHTLY_VERSION).exists()
        mock_run.assert_not_called()

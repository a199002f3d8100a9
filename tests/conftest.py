import logging
import subprocess
from typing import Dict, Iterable, List, Optional

import pytest

import app_server_setup
from app_server_setup import CommandRunner, Config, ServerSetup


class RecordingRunner(CommandRunner):
    """Records commands instead of executing them.

    Any command whose joined text contains one of ``failures`` exits 1;
    ``outputs`` maps a joined command line to the stdout it should return.
    """

    def __init__(
        self,
        failures: Iterable[str] = (),
        outputs: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(logging.getLogger("app_server_setup.tests"), timeout=5, use_sudo=True)
        self.failures = list(failures)
        self.outputs = outputs or {}
        self.calls: List[List[str]] = []
        self.written: Dict[str, str] = {}

    def _execute(self, cmd, input_text, interactive):
        self.calls.append(cmd)
        joined = " ".join(cmd)
        if input_text is not None:
            self.written[cmd[-1]] = self.written.get(cmd[-1], "") + input_text
        for failure in self.failures:
            if failure in joined:
                return subprocess.CompletedProcess(cmd, 1, stdout="boom")
        return subprocess.CompletedProcess(cmd, 0, stdout=self.outputs.get(joined, ""))

    @property
    def commands(self) -> List[str]:
        return [" ".join(cmd) for cmd in self.calls]


@pytest.fixture
def config(tmp_path):
    return Config(
        log_file=str(tmp_path / "setup.log"),
        backup_dir=str(tmp_path / "backup"),
        www_root=str(tmp_path / "www"),
        repo_root=str(tmp_path / "repo"),
        sites_available=str(tmp_path / "sites-available"),
        hosts_file=str(tmp_path / "hosts"),
        deploy_log_dir=str(tmp_path / "log"),
    )


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def make_setup(config, monkeypatch):
    monkeypatch.setattr(app_server_setup.getpass, "getuser", lambda: "deploy")

    def factory(runner: Optional[RecordingRunner] = None) -> ServerSetup:
        return ServerSetup(config, runner=runner or RecordingRunner())

    return factory


@pytest.fixture
def answers(monkeypatch):
    """Script the answers given to Prompt.ask and Confirm.ask, in order."""

    def scripted(prompts: Iterable[str] = (), confirms: Iterable[bool] = ()) -> None:
        prompt_iter = iter(prompts)
        confirm_iter = iter(confirms)
        monkeypatch.setattr(
            app_server_setup.Prompt, "ask", lambda *args, **kwargs: next(prompt_iter)
        )
        monkeypatch.setattr(
            app_server_setup.Confirm, "ask", lambda *args, **kwargs: next(confirm_iter)
        )

    return scripted

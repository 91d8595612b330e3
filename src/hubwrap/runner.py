"""Execute rewrite outcomes."""

import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional

import requests

from . import __version__, ui
from .api import ApiError, format_api_error
from .args import Command
from .git_wrapper import GitError
from .outcome import ApiSequence, Download, Emit, Forward, Message, Outcome, Step

logger = logging.getLogger(__name__)


class Runner:
    """Runs an Outcome and returns the process exit code.

    With noop set, commands and downloads are printed instead of executed
    and API calls print what they would do.
    """

    def __init__(
        self,
        noop: bool = False,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        session: Optional[requests.Session] = None,
    ):
        """Initialize runner.

        Args:
            noop: Print steps instead of executing them
            run: Process launcher (default: subprocess.run)
            session: HTTP session used for downloads
        """
        self.noop = noop
        self._run = run
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = f"hub {__version__}"
        return self._session

    def run(self, outcome: Outcome) -> int:
        if isinstance(outcome, Emit):
            return self._emit(outcome)
        if isinstance(outcome, ApiSequence):
            return self._run_api_sequence(outcome)
        return self._run_forward(outcome)

    def _emit(self, outcome: Emit) -> int:
        if outcome.text:
            if outcome.stderr:
                ui.error(outcome.text)
            else:
                ui.status(outcome.text)
        return outcome.exit_code

    def _run_api_sequence(self, outcome: ApiSequence) -> int:
        for call in outcome.calls:
            if self.noop:
                ui.status(call.description)
                continue
            logger.debug("API call: %s", call.action)
            try:
                line = call.invoke()
            except ApiError as e:
                ui.error(format_api_error(e))
                return 1
            if line:
                ui.status(line)

        if outcome.then is None:
            return 0
        return self.run(outcome.then)

    def _run_forward(self, outcome: Forward) -> int:
        code = 0
        for step in outcome.steps:
            code = self._run_step(step)
            if code != 0:
                break
        return code

    def _run_step(self, step: Step) -> int:
        if isinstance(step, Message):
            ui.status(step.text)
            return 0
        if self.noop:
            ui.status(str(step))
            return 0
        if isinstance(step, Download):
            return self._download(step)
        return self._execute(step)

    def _download(self, step: Download) -> int:
        logger.debug("downloading %s to %s", step.url, step.path)
        target = Path(step.path)
        opened = False
        try:
            with self.session.get(step.url, stream=True) as response:
                response.raise_for_status()
                with open(target, "wb") as f:
                    opened = True
                    for chunk in response.iter_content(chunk_size=8192):
                        f.write(chunk)
        except (requests.RequestException, OSError) as e:
            if opened:
                target.unlink(missing_ok=True)
            ui.error(f"Error downloading {step.url}: {e}")
            return 1
        return 0

    def _execute(self, command: Command) -> int:
        """Run a command, passing its output straight through.

        Raises:
            GitError: If the executable cannot be found
        """
        argv = command.argv
        logger.debug("exec: %s", command)
        try:
            result = self._run(argv)
        except FileNotFoundError as e:
            raise GitError(f"{argv[0]}: command not found", returncode=127, stderr=str(e)) from e
        return result.returncode

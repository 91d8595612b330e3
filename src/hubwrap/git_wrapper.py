"""Wrapper for Git subprocess queries."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when a Git command fails."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        """Initialize Git error.

        Args:
            message: Error message
            returncode: Git command return code
            stderr: Standard error output
        """
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


_UNSET = object()


class GitReader:
    """Memoizing reader for git queries.

    Every query is cached under its exact argument list. A failed query
    (non-zero exit, empty output, git missing) is cached as None, which is
    distinct from a query that was never run.
    """

    def __init__(
        self,
        executable: Optional[list[str]] = None,
        working_dir: Optional[Path] = None,
    ):
        """Initialize Git reader.

        Args:
            executable: Git executable and global flags (default: ["git"])
            working_dir: Working directory for git commands (default: cwd)
        """
        self.executable = list(executable or ["git"])
        self.working_dir = working_dir or Path.cwd()
        self._cache: dict[str, object] = {}

    def add_exec_flags(self, flags: list[str]) -> None:
        """Append global flags to the executable used for queries."""
        self.executable.extend(flags)

    def read(self, args: list[str]) -> Optional[str]:
        """Run a git query and return its stripped output.

        Args:
            args: Command arguments (without 'git')

        Returns:
            Output with trailing whitespace removed, or None on failure
        """
        key = " ".join(args)
        cached = self._cache.get(key, _UNSET)
        if cached is not _UNSET:
            return cached  # type: ignore[return-value]

        value = self._run(args)
        if value is not None:
            value = value.rstrip()
            if not value:
                value = None
        self._cache[key] = value
        return value

    def read_config(
        self,
        key: str,
        get_all: bool = False,
        as_bool: bool = False,
    ) -> Optional[str]:
        """Read a git config value.

        Args:
            key: Config key (e.g. "github.user")
            get_all: Return every value, newline separated
            as_bool: Ask git to normalize the value as a boolean

        Returns:
            Config value or None if not set
        """
        return self.read(self._config_args(key, get_all, as_bool))

    def stub_config_value(
        self,
        key: str,
        value: Optional[str],
        get_all: bool = False,
    ) -> None:
        """Seed the cache with a config value (used for `-c key=value`)."""
        self._cache[" ".join(self._config_args(key, get_all, False))] = value

    def stub_command_output(self, args: list[str], value: Optional[str]) -> None:
        """Seed the cache with the output of a query."""
        self._cache[" ".join(args)] = value

    @staticmethod
    def _config_args(key: str, get_all: bool, as_bool: bool) -> list[str]:
        args = ["config", "--get-all" if get_all else "--get"]
        if as_bool:
            args.append("--bool")
        args.append(key)
        return args

    def _run(self, args: list[str]) -> Optional[str]:
        """Execute a query without caching.

        Returns:
            Raw stdout, or None if the command failed
        """
        cmd = self.executable + args
        logger.debug("git query: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                cwd=self.working_dir,
                env=os.environ.copy(),
            )
        except subprocess.CalledProcessError as e:
            logger.debug("git query failed (%d): %s", e.returncode, (e.stderr or "").strip())
            return None
        except FileNotFoundError:
            logger.debug("git executable not found: %s", cmd[0])
            return None
        return result.stdout

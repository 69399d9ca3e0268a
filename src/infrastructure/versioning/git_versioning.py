"""Git versioning provider.

The storage directory is a Git working tree. Every mutation stages
``<name>.yaml`` and commits it with the acting user as author; history is
read back from ``git log``. Git commands run as subprocesses and are
serialized by one lock because they share the index.
"""

import asyncio
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from src.domain.entities.service import Service, ServiceAction, UserContext
from src.domain.entities.service_change import FieldChange, ServiceChange
from src.domain.repositories.versioning_provider import VersioningProviderInterface
from src.infrastructure.versioning.change_message import (
    SYSTEM_USER,
    acting_user,
    build_change_message,
    build_deletion_message,
)

logger = logging.getLogger(__name__)

GITIGNORE_CONTENT = "# Service Catalog\n*.tmp\n*.bak\n.DS_Store\n"
LOG_FORMAT = "--pretty=format:%H|%an|%ae|%ad|%s"
GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class GitCommandError(Exception):
    """A git invocation failed."""

    def __init__(self, args: tuple[str, ...], returncode: int | None, stderr: str):
        super().__init__(f"git {' '.join(args)} failed ({returncode}): {stderr.strip()}")
        self.command = args
        self.returncode = returncode
        self.stderr = stderr


class GitVersioningProvider(VersioningProviderInterface):
    """Commits each service mutation to a local Git repository."""

    name = "git"

    def __init__(self, directory: str | Path, git_binary: str = "git"):
        self._directory = Path(directory)
        self._git = git_binary
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create the repository, seed .gitignore and the initial commit."""
        await asyncio.to_thread(self._directory.mkdir, parents=True, exist_ok=True)

        async with self._lock:
            if not (self._directory / ".git").exists():
                await self._run("init")
                await self._run("config", "init.defaultBranch", "main")
                await self._run("symbolic-ref", "HEAD", "refs/heads/main")
                logger.info(f"Initialized service catalog git repository at {self._directory}")

            gitignore = self._directory / ".gitignore"
            if not gitignore.exists():
                await asyncio.to_thread(gitignore.write_text, GITIGNORE_CONTENT, encoding="utf-8")
                await self._run("add", "--", ".gitignore")
                await self._commit(
                    "Initialize service catalog repository\n", SYSTEM_USER
                )

    async def record_change(
        self,
        service: Service,
        user: UserContext | None,
        action: ServiceAction,
        field_changes: list[FieldChange] | None = None,
    ) -> None:
        actor = acting_user(user)
        now = datetime.now(timezone.utc)
        message = build_change_message(service, actor, action, now, field_changes)
        file_name = self._file_name(service.metadata.name)

        async with self._lock:
            await self._run("add", "--all", "--", file_name)
            await self._commit(message, actor)
        logger.info(f"Committed {action.value} of {service.metadata.name}")

    async def record_deletion(self, service_name: str, user: UserContext | None) -> None:
        actor = acting_user(user)
        now = datetime.now(timezone.utc)
        message = build_deletion_message(service_name, actor, now)

        async with self._lock:
            await self._run(
                "rm", "--cached", "--ignore-unmatch", "--quiet", "--",
                self._file_name(service_name),
            )
            await self._commit(message, actor)
        logger.info(f"Committed deletion of {service_name}")

    async def get_service_history(self, service_name: str) -> list[ServiceChange]:
        async with self._lock:
            if not await self._has_commits():
                return []
            output = await self._run(
                "log", LOG_FORMAT, "--date=iso", "--", self._file_name(service_name)
            )
        return self.parse_log(output)

    def is_enabled(self) -> bool:
        return True

    async def get_status(self) -> str:
        async with self._lock:
            output = await self._run("status", "--short")
        changes = [line for line in output.splitlines() if line.strip()]
        if not changes:
            return "Git repository clean"
        return f"Git repository has {len(changes)} uncommitted changes"

    @staticmethod
    def parse_log(output: str) -> list[ServiceChange]:
        """Parse ``git log --pretty=format:%H|%an|%ae|%ad|%s --date=iso``."""
        history: list[ServiceChange] = []
        for line in output.splitlines():
            parts = line.split("|", 4)
            if len(parts) != 5:
                continue
            commit, author, email, date, subject = parts
            try:
                timestamp = datetime.strptime(date.strip(), GIT_DATE_FORMAT)
            except ValueError:
                logger.warning(f"Unparseable git date '{date}' in commit {commit}")
                continue
            action = subject.split(" ", 1)[0].lower()
            history.append(
                ServiceChange(
                    id=commit,
                    author=author,
                    email=email,
                    timestamp=timestamp,
                    message=subject,
                    action=action if action in ("create", "update", "delete") else "",
                )
            )
        return history

    async def _has_commits(self) -> bool:
        try:
            await self._run("rev-parse", "--verify", "--quiet", "HEAD")
        except GitCommandError:
            return False
        return True

    async def _commit(self, message: str, author: UserContext) -> None:
        env = {
            "GIT_AUTHOR_NAME": author.display_name,
            "GIT_AUTHOR_EMAIL": author.email,
            "GIT_COMMITTER_NAME": SYSTEM_USER.name,
            "GIT_COMMITTER_EMAIL": SYSTEM_USER.email,
        }
        await self._run(
            "-c", "commit.gpgsign=false",
            "commit", "--allow-empty", "--quiet", "-m", message,
            env=env,
        )

    async def _run(self, *args: str, env: dict[str, str] | None = None) -> str:
        process_env = {**os.environ, **(env or {})}
        try:
            process = await asyncio.create_subprocess_exec(
                self._git,
                *args,
                cwd=str(self._directory),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=process_env,
            )
        except FileNotFoundError as e:
            raise GitCommandError(args, None, f"git binary not found: {e}") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise GitCommandError(
                args, process.returncode, stderr.decode("utf-8", errors="replace")
            )
        return stdout.decode("utf-8", errors="replace")

    @staticmethod
    def _file_name(service_name: str) -> str:
        return f"{service_name}.yaml"

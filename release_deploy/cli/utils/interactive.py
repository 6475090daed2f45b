"""Interactive utilities for CLI commands"""

from typing import Callable, List, Optional

from rich.console import Console
from rich.prompt import Prompt, Confirm

from ...api.exceptions import ConfigurationError, UserCancelledError
from ...constants import (
    Stage,
    Timing,
    PROMPT_SELECT_BRANCH,
    PROMPT_SELECT_RELEASE,
    PROMPT_SELECT_TAG,
)
from ...core.source_fetcher import RefSelection, SourceFetcher
from ...models import Release
from ...services.config_service import (
    ConfigService,
    ENVIRONMENT_KEYS,
    GIT_KEYS,
    PATH_KEYS,
)
from ...utils.output import console as shared_console
from .output import choice_table, releases_table


def ask_index(prompt: str, count: int, console: Console = None, allow_zero: bool = True) -> int:
    """Ask for a table index until a valid one is entered

    Args:
        prompt: Prompt text
        count: Highest valid index
        console: Console to print to
        allow_zero: Whether 0 is a valid answer

    Returns:
        Selected index

    Raises:
        UserCancelledError: Input ended before a valid answer
    """
    console = console or shared_console
    lowest = 0 if allow_zero else 1
    while True:
        try:
            answer = Prompt.ask(prompt, default=str(lowest), console=console)
        except EOFError as e:
            raise UserCancelledError() from e
        try:
            selected = int(answer.strip())
        except (ValueError, AttributeError):
            console.print("Please enter a number")
            continue
        if lowest <= selected <= count:
            return selected
        console.print("Selection is out of range")


class RefPrompter:
    """Asks the operator which tag or branch to deploy"""

    def __init__(self, console: Console = None):
        self.console = console or shared_console

    def __call__(self, fetcher: SourceFetcher) -> RefSelection:
        tags = fetcher.available_tags()
        if tags:
            self.console.print()
            self.console.print(choice_table("Choose Release", tags, "none (choose a branch)"))
            selected = ask_index(PROMPT_SELECT_TAG, len(tags), self.console)
            if selected > 0:
                return RefSelection.tag(tags[selected - 1])

        branches = fetcher.available_branches()
        if not branches:
            return RefSelection.default()

        git = fetcher.config.git
        self.console.print()
        self.console.print(choice_table(
            "Choose Branch", branches, f"default ({git.remote}/{git.branch})"
        ))
        selected = ask_index(PROMPT_SELECT_BRANCH, len(branches), self.console)
        if selected == 0:
            return RefSelection.default()
        return RefSelection.branch(branches[selected - 1])


class ReleasePrompter:
    """Asks the operator which release to roll back to"""

    def __init__(self, console: Console = None, live: Optional[str] = None):
        self.console = console or shared_console
        self.live = live

    def __call__(self, candidates: List[Release], current: Optional[str]) -> Optional[Release]:
        self.console.print()
        self.console.print(releases_table(
            candidates,
            current=current,
            live=self.live,
            cancel_row="Cancel Rollback",
            title="Choose Release (newest to oldest)",
        ))
        if current:
            self.console.print(f"Current release: [yellow]{current}[/yellow]")

        selected = ask_index(PROMPT_SELECT_RELEASE, len(candidates), self.console)
        if selected == 0:
            return None

        return candidates[selected - 1]


class ConfigWizard:
    """Guided editor over the ConfigService setters"""

    def __init__(self, service: ConfigService, hook_names: List[str] = None, console: Console = None):
        self.service = service
        self.hook_names = hook_names or []
        self.console = console or shared_console

    def run(self) -> None:
        """Walk through every section

        Raises:
            UserCancelledError: Input ended before the last question
        """
        try:
            self._run()
        except EOFError as e:
            raise UserCancelledError() from e

    def _run(self) -> None:
        config = self.service.config
        self.console.print("\n[bold cyan]Release Deploy Configuration[/bold cyan]\n")

        self.console.print("[bold]Environment[/bold]")
        environment = config.environment.to_dict()
        for key in ENVIRONMENT_KEYS:
            self._ask_value(f"Environment.{key}", environment.get(key),
                            lambda value, key=key: self.service.set_environment(key, value))

        self.console.print("\n[bold]Paths[/bold] [dim](empty uses the default)[/dim]")
        paths = config.paths.to_dict()
        for key in PATH_KEYS:
            self._ask_value(f"Paths.{key}", paths.get(key),
                            lambda value, key=key: self.service.set_path(key, value))

        self.console.print("\n[bold]Git[/bold]")
        git = config.git.to_dict()
        for key in GIT_KEYS:
            self._ask_value(f"Git.{key}", git.get(key),
                            lambda value, key=key: self.service.set_git(key, value))

        if Confirm.ask("\nEdit shared and removed files?", default=False, console=self.console):
            self._edit_list("Shared", config.shared,
                            self.service.add_shared, self.service.remove_shared)
            self._edit_list("Remove", config.remove,
                            self.service.add_remove, self.service.remove_remove)

        if Confirm.ask("Edit ownership and permissions?", default=False, console=self.console):
            for timing in Timing:
                rule = config.chown.rule(timing)
                self._ask_value(f"Chown.{timing.value}.Group", rule.group,
                                lambda value, t=timing: self.service.set_chown_group(t, value))
                self._edit_list(f"Chown.{timing.value}.Paths", rule.paths,
                                lambda path, t=timing: self.service.add_chown_path(t, path),
                                lambda path, t=timing: self.service.remove_chown_path(t, path))
            for timing in Timing:
                rule = config.chmod.rule(timing)
                self._ask_value(f"Chmod.{timing.value}.Permission", rule.permission,
                                lambda value, t=timing: self.service.set_chmod_permission(t, value))
                self._edit_list(f"Chmod.{timing.value}.Paths", rule.paths,
                                lambda path, t=timing: self.service.add_chmod_path(t, path),
                                lambda path, t=timing: self.service.remove_chmod_path(t, path))

        if Confirm.ask("Edit hooks?", default=False, console=self.console):
            if self.hook_names:
                self.console.print(f"[dim]Available hooks: {', '.join(self.hook_names)}[/dim]")
            for stage in Stage:
                for timing in Timing:
                    self._edit_list(
                        f"Processes.{stage.value}.{timing.value}",
                        config.processes.get(stage, timing),
                        lambda name, s=stage, t=timing: self.service.add_process(s, t, name),
                        lambda name, s=stage, t=timing: self.service.remove_process(s, t, name),
                    )

    def _ask_value(self, label: str, current, setter: Callable[[str], None]) -> None:
        """Prompt until the setter accepts the answer"""
        default = "" if current is None else str(current).lower() if isinstance(current, bool) else str(current)
        while True:
            answer = Prompt.ask(label, default=default, console=self.console)
            try:
                setter(answer)
                return
            except ConfigurationError as e:
                self.console.print(f"[red]{e}[/red]")

    def _edit_list(self,
                   label: str,
                   items: List[str],
                   add: Callable[[str], bool],
                   remove: Callable[[str], bool]) -> None:
        """Add values, ``-N`` removes item N, empty answer finishes"""
        while True:
            self.console.print(f"\n[bold]{label}[/bold]")
            if items:
                for index, item in enumerate(items, 1):
                    self.console.print(f"  {index}. {item}")
            else:
                self.console.print("  [dim](empty)[/dim]")

            answer = Prompt.ask("Add value, -N removes item N, Enter when done",
                                default="", console=self.console).strip()
            if not answer:
                return
            if answer.startswith("-") and answer[1:].isdigit():
                index = int(answer[1:])
                if 1 <= index <= len(items):
                    remove(items[index - 1])
                else:
                    self.console.print("Selection is out of range")
                continue
            if not add(answer):
                self.console.print(f"{answer} is already listed")

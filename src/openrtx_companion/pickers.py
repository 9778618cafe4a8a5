"""
File and folder pickers.

A picker returns a path, or None when the user cancels. The tab state
machine calls pickers off the interactive thread and feeds the answer back
as a FilePath event.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt


class Picker:
    """Interface for file/folder pickers."""

    def pick_file(self) -> Optional[str]:
        raise NotImplementedError

    def pick_folder(self) -> Optional[str]:
        raise NotImplementedError


class PromptPicker(Picker):
    """Terminal picker that asks for a path with a rich prompt."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _ask(self, label: str, want_dir: bool) -> Optional[str]:
        while True:
            answer = Prompt.ask(
                f"{label} [dim](leave empty to cancel)[/dim]",
                default="",
                show_default=False,
                console=self.console,
            ).strip()
            if not answer:
                return None
            path = Path(answer).expanduser()
            if want_dir and path.is_dir():
                return str(path)
            if not want_dir and path.is_file():
                return str(path)
            kind = "folder" if want_dir else "file"
            self.console.print(f"[yellow]No such {kind}: {path}[/yellow]")

    def pick_file(self) -> Optional[str]:
        return self._ask("Image file", want_dir=False)

    def pick_folder(self) -> Optional[str]:
        return self._ask("Backup folder", want_dir=True)


class StaticPicker(Picker):
    """Picker with preset answers, for scripted runs and tests."""

    def __init__(self, file: Optional[str] = None, folder: Optional[str] = None):
        self.file = file
        self.folder = folder

    def pick_file(self) -> Optional[str]:
        return self.file

    def pick_folder(self) -> Optional[str]:
        return self.folder

"""
prompt_toolkit completers for the playdeck REPL.
Provides autocomplete for commands and for track numbers.
"""

from typing import Callable, Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document


class PlaydeckCompleter(Completer):
    """
    Command completer with descriptions.

    Completes the command word, then on/off for toggles and track numbers
    (with their names) for commands that take one.
    """

    # Format: 'command': ('icon', 'description')
    COMMANDS = {
        'play': ('▶', 'Resume or play track n'),
        'pause': ('⏸', 'Pause current track'),
        'stop': ('■', 'Stop playback'),
        'next': ('⏭', 'Next track'),
        'prev': ('⏮', 'Previous track'),
        'skip': ('⏭', 'Skip current track'),
        'goto': ('↪', 'Play track n'),
        'seek': ('⏩', 'Seek to seconds'),
        'seekp': ('⏩', 'Seek to fraction 0-1'),
        'loop': ('🔁', 'Toggle playlist loop'),
        'shuffle': ('🔀', 'Toggle shuffle'),
        'volume': ('🔊', 'Show or set volume'),
        'status': ('ℹ', 'Show player status'),
        'info': ('🎵', 'Show track metadata'),
        'list': ('📋', 'List tracks'),
        'remove': ('➖', 'Remove track n'),
        'save': ('💾', 'Save playback state'),
        'help': ('❓', 'Show help'),
        'quit': ('👋', 'Exit playdeck'),
        'exit': ('👋', 'Exit playdeck'),
    }

    TOGGLE_COMMANDS = {'loop', 'shuffle'}
    TRACK_COMMANDS = {'play', 'goto', 'remove'}

    def __init__(self, track_names: Callable[[], list[str]] = list):
        self._track_names = track_names

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor.lstrip()
        parts = text.split()

        # Still typing the command word
        if not parts or (len(parts) == 1 and not text.endswith(' ')):
            word = parts[0].lower() if parts else ''
            for command, (icon, description) in sorted(self.COMMANDS.items()):
                if command.startswith(word):
                    yield Completion(
                        command,
                        start_position=-len(word),
                        display=command,
                        display_meta=f"{icon}\t{description}"
                    )
            return

        command = parts[0].lower()
        word = '' if text.endswith(' ') else parts[-1]

        if command in self.TOGGLE_COMMANDS:
            for option in ('on', 'off'):
                if option.startswith(word.lower()):
                    yield Completion(option, start_position=-len(word))

        elif command in self.TRACK_COMMANDS:
            shown = 0
            for i, name in enumerate(self._track_names()):
                number = str(i + 1)
                if number.startswith(word) and shown < 50:
                    shown += 1
                    yield Completion(
                        number,
                        start_position=-len(word),
                        display=number,
                        display_meta=name
                    )

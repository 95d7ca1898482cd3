"""
Command routing for the playdeck REPL.

Routes user commands to the appropriate handler functions.
"""

from typing import List, Tuple

from loguru import logger

from playdeck.commands import playback
from playdeck.context import AppContext
from playdeck.core.output import log
from playdeck.domain.playback.exceptions import PlaybackError


def print_help() -> None:
    """Display help information for available commands."""
    help_text = """
playdeck - playlist player

Playback:
  play [n]          Resume, or play track number n
  pause             Pause current playback
  stop              Stop and return to the first track
  next              Play the next track
  prev              Play the previous track
  skip              End the current track and move on
  goto <n>          Play track number n

Position and volume:
  seek <seconds>    Jump to a position in the current track
  seekp <0-1>       Jump to a fraction of the current track
  volume [0-100]    Show or set the volume

Modes:
  loop [on|off]     Show or set playlist looping
  shuffle [on|off]  Show or set shuffled order

Playlist:
  status            Show player status
  info              Show metadata for the current track
  list              List tracks in the playlist
  remove <n>        Remove track number n

  save              Save the playback position now
  help              Show this help message
  quit, exit        Save state and exit

Track numbers start at 1.
"""
    print(help_text.strip())


async def handle_command(ctx: AppContext, command: str, args: List[str]) -> Tuple[AppContext, bool]:
    """
    Handle a single command with explicit state passing.

    Playback errors, bad arguments and storage failures are reported and
    the REPL continues.

    Args:
        ctx: Application context
        command: Command name
        args: Command arguments

    Returns:
        (updated_context, should_continue) - Updated context and whether to continue
    """
    try:
        return await _dispatch(ctx, command, args)
    except PlaybackError as e:
        logger.warning(f"Command '{command}' failed: {e}")
        if ctx.console is not None:
            ctx.console.print(str(e), style="red", markup=False)
        else:
            print(str(e))
        return ctx, True
    except ValueError as e:
        log(f"Error: {e}", "error")
        return ctx, True
    except OSError as e:
        log(f"Error: {command} failed: {e}", "error")
        return ctx, True


async def _dispatch(ctx: AppContext, command: str, args: List[str]) -> Tuple[AppContext, bool]:
    if command in ['quit', 'exit']:
        return ctx, False

    elif command == 'help':
        print_help()
        return ctx, True

    elif command == 'play':
        return playback.handle_play_command(ctx, args)

    elif command == 'pause':
        return playback.handle_pause_command(ctx)

    elif command == 'stop':
        return playback.handle_stop_command(ctx)

    elif command == 'next':
        return playback.handle_next_command(ctx)

    elif command in ['prev', 'previous']:
        return playback.handle_prev_command(ctx)

    elif command == 'skip':
        return playback.handle_skip_command(ctx)

    elif command == 'goto':
        return playback.handle_goto_command(ctx, args)

    elif command == 'seek':
        return playback.handle_seek_command(ctx, args)

    elif command == 'seekp':
        return playback.handle_seekp_command(ctx, args)

    elif command == 'loop':
        return playback.handle_loop_command(ctx, args)

    elif command == 'shuffle':
        return playback.handle_shuffle_command(ctx, args)

    elif command == 'volume':
        return playback.handle_volume_command(ctx, args)

    elif command == 'status':
        return playback.handle_status_command(ctx)

    elif command == 'info':
        return playback.handle_info_command(ctx)

    elif command == 'list':
        return playback.handle_list_command(ctx)

    elif command == 'remove':
        return playback.handle_remove_command(ctx, args)

    elif command == 'save':
        return await playback.handle_save_command(ctx)

    elif command == '':
        # Empty command, do nothing
        return ctx, True

    else:
        print(f"Unknown command: '{command}'. Type 'help' for available commands.")
        return ctx, True

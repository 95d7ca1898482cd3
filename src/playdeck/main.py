"""
Interactive mode for playdeck.

Wires configuration, logging, the mpv transport, storage and the playlist
manager together, then runs the prompt_toolkit REPL on the asyncio loop that
also drives playback timers and autosave.
"""

import asyncio
import contextlib
from typing import Optional, Sequence

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout

from playdeck import router
from playdeck.completers import PlaydeckCompleter
from playdeck.context import AppContext
from playdeck.core import config
from playdeck.core.console import get_console, safe_print
from playdeck.core.output import setup_loguru
from playdeck.core.storage import JSONStorage
from playdeck.domain.library.scanner import scan_library
from playdeck.domain.playback import persistence
from playdeck.domain.playback.events import TrackEvent
from playdeck.domain.playback.exceptions import TransportError
from playdeck.domain.playback.mpv_transport import MpvTransport, check_mpv_available
from playdeck.domain.playback.orchestrator import PlaylistManager
from playdeck.utils.parsers import parse_command


async def load_library(
    manager: PlaylistManager,
    storage: JSONStorage,
    cfg: config.Config,
    paths: Sequence[str] = (),
    rescan: bool = False,
) -> int:
    """Fill the playlist from the saved song list, or by scanning for files.

    Explicit paths are scanned but not saved as the song list; a scan of the
    configured library paths replaces the saved list.

    Returns:
        Number of tracks loaded
    """
    songs_key = cfg.storage.songs_key

    if not paths and not rescan:
        try:
            stored = await storage.get(songs_key)
        except ValueError as e:
            logger.warning(f"Saved song list is unreadable: {e}")
            stored = None
        if stored:
            try:
                return manager.load_songs(stored)
            except (TypeError, ValueError) as e:
                logger.warning(f"Saved song list is unusable, rescanning: {e}")

    songs = scan_library(cfg, list(paths) or None)
    count = manager.load_songs(songs)
    if not paths:
        await storage.set(songs_key, [song.to_dict() for song in songs])
    return count


def _register_event_display(manager: PlaylistManager) -> None:
    def on_track_start(track, index):
        safe_print(
            f"♪ Now playing: {manager.get_display_name(index)} "
            f"({index + 1}/{manager.get_total_tracks()})",
            style="cyan",
        )

    def on_playlist_end():
        safe_print("End of playlist", style="magenta")

    manager.on(TrackEvent.TRACK_START, on_track_start)
    manager.on(TrackEvent.PLAYLIST_END, on_playlist_end)


async def _run_repl(ctx: AppContext) -> None:
    manager = ctx.manager
    console = ctx.console or get_console()

    session: PromptSession = PromptSession(
        completer=PlaydeckCompleter(
            lambda: [manager.get_display_name(i) for i in range(manager.get_total_tracks())]
        ),
        complete_while_typing=False,
    )

    console.print("[bold green]Welcome to playdeck![/bold green]")
    console.print("Type 'help' for available commands, or 'quit' to exit.")
    console.print()

    with patch_stdout():
        should_continue = True
        while should_continue:
            try:
                user_input = await session.prompt_async("playdeck> ")
            except KeyboardInterrupt:
                console.print("[yellow]Use 'quit' or 'exit' to leave gracefully.[/yellow]")
                continue
            except EOFError:
                break

            command, args = parse_command(user_input)
            ctx, should_continue = await router.handle_command(ctx, command, args)

    console.print("[green]Goodbye![/green]")


async def interactive_mode(
    paths: Sequence[str] = (),
    rescan: bool = False,
    restore: bool = True,
    state_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    verbose: bool = False,
) -> int:
    """Run the interactive player until the user quits.

    Returns:
        Process exit code
    """
    cfg = config.load_config()
    if state_dir:
        cfg.storage.state_dir = state_dir
    if log_level:
        cfg.logging.level = log_level.upper()
    config.ensure_directories(cfg)

    setup_loguru(
        config.get_log_file_path(cfg),
        level=cfg.logging.level,
        max_file_size_mb=cfg.logging.max_file_size_mb,
        backup_count=cfg.logging.backup_count,
        console_output=cfg.logging.console_output or verbose,
    )

    if not check_mpv_available():
        safe_print("❌ mpv not found. Install mpv to use playdeck.", style="red")
        return 1

    try:
        transport = MpvTransport.start(cfg.player)
    except TransportError as e:
        logger.error(f"Could not start audio engine: {e}")
        safe_print(f"❌ {e}", style="red")
        return 1

    storage = JSONStorage(config.get_state_dir(cfg))
    manager = PlaylistManager.from_config(cfg, transport)
    ctx = AppContext(config=cfg, manager=manager, storage=storage, console=get_console())
    _register_event_display(manager)

    autosave_task: Optional[asyncio.Task] = None
    try:
        count = await load_library(manager, storage, cfg, paths, rescan)
        if count == 0:
            safe_print("No audio files found. Check library_paths in your config.", style="yellow")
        else:
            safe_print(f"Loaded {count} tracks", style="green")

        # A saved position only makes sense against the saved song list
        if restore and not paths and count:
            await manager.load_state(storage, ctx.state_key)

        autosave_task = asyncio.create_task(
            persistence.autosave(
                manager, storage, ctx.state_key, cfg.storage.autosave_interval_s
            )
        )

        await _run_repl(ctx)
    finally:
        if autosave_task is not None:
            autosave_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await autosave_task

        if manager.get_total_tracks():
            try:
                await manager.save_state(storage, ctx.state_key)
            except Exception:
                logger.exception("Failed to save playback state on exit")
        manager.dispose()

    return 0

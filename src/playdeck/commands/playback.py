"""
Playback command handlers for the playdeck REPL.

Handles: play, pause, stop, next, prev, skip, goto, seek, seekp, loop,
shuffle, volume, status, info, list, remove, save
"""

from typing import List, Tuple

from playdeck.context import AppContext
from playdeck.core.console import format_time, get_console, render_playlist, render_status
from playdeck.core.output import log
from playdeck.domain.playback.orchestrator import PlayerState
from playdeck.utils.parsers import parse_float, parse_on_off, parse_track_number


def _console(ctx: AppContext):
    return ctx.console or get_console()


def _announce_current(ctx: AppContext, verb: str) -> None:
    manager = ctx.manager
    if manager.get_total_tracks() == 0:
        log("No tracks loaded", "warning")
        return
    index = manager.get_current_index()
    log(f"{verb}: {manager.get_display_name(index)} ({index + 1}/{manager.get_total_tracks()})")


def handle_play_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Handle play command - resume, or jump to a track number and play it."""
    if args:
        ctx.manager.go_to_track(parse_track_number(args[0]))
    else:
        ctx.manager.resume()
    _announce_current(ctx, "▶ Playing")
    return ctx, True


def handle_pause_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    if ctx.manager.get_state() not in (PlayerState.PLAYING, PlayerState.LOADING):
        log("Nothing is playing")
        return ctx, True
    ctx.manager.pause()
    log("⏸ Paused")
    return ctx, True


def handle_stop_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.manager.stop()
    log("■ Stopped")
    return ctx, True


def handle_next_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.manager.next_track()
    if ctx.manager.get_state() == PlayerState.ENDED:
        log("End of playlist")
    else:
        _announce_current(ctx, "⏭ Next")
    return ctx, True


def handle_prev_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.manager.previous_track()
    _announce_current(ctx, "⏮ Previous")
    return ctx, True


def handle_skip_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.manager.skip()
    if ctx.manager.get_state() == PlayerState.ENDED:
        log("End of playlist")
    else:
        _announce_current(ctx, "⏭ Skipped to")
    return ctx, True


def handle_goto_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    if not args:
        log("Usage: goto <track number>", "warning")
        return ctx, True
    ctx.manager.go_to_track(parse_track_number(args[0]))
    _announce_current(ctx, "▶ Playing")
    return ctx, True


def handle_seek_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Handle seek command - jump to an absolute position in seconds."""
    if not args:
        log("Usage: seek <seconds>", "warning")
        return ctx, True
    seconds = parse_float(args[0], "Position")
    ctx.manager.seek_seconds(seconds)
    log(f"Position: {format_time(ctx.manager.get_current_time())}")
    return ctx, True


def handle_seekp_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Handle seekp command - jump to a fraction (0-1) of the track."""
    if not args:
        log("Usage: seekp <0.0-1.0>", "warning")
        return ctx, True
    ctx.manager.seek(parse_float(args[0], "Fraction"))
    log(f"Position: {format_time(ctx.manager.get_current_time())}")
    return ctx, True


def handle_loop_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    if args:
        ctx.manager.set_loop(parse_on_off(args[0]))
    log(f"🔁 Loop: {'on' if ctx.manager.is_loop() else 'off'}")
    return ctx, True


def handle_shuffle_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    if args:
        ctx.manager.set_shuffle(parse_on_off(args[0]))
    log(f"🔀 Shuffle: {'on' if ctx.manager.is_shuffle() else 'off'}")
    return ctx, True


def handle_volume_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Handle volume command - show or set volume as a percentage (0-100)."""
    if args:
        percent = parse_float(args[0], "Volume")
        ctx.manager.set_volume(percent / 100)
    log(f"🔊 Volume: {ctx.manager.get_volume():.0%}")
    return ctx, True


def handle_status_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    _console(ctx).print(render_status(ctx.manager.get_status()))
    return ctx, True


def handle_info_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    """Handle info command - show metadata for the current track."""
    manager = ctx.manager
    track = manager.get_current_track()
    if track is None:
        log("No tracks loaded", "warning")
        return ctx, True

    console = _console(ctx)
    meta = manager.get_current_track_metadata()
    if meta is None:
        console.print(f"[bold]{track.name}[/bold] (no metadata)")
        return ctx, True

    console.print(f"[bold]{meta.display_name()}[/bold]")
    if meta.album:
        console.print(f"  Album:    {meta.album}")
    if meta.duration:
        console.print(f"  Duration: {format_time(meta.duration)}")
    if meta.sample_rate:
        console.print(f"  Format:   {meta.sample_rate} Hz, {meta.channels} ch")
    console.print(f"  Path:     {meta.path}", style="dim")
    return ctx, True


def handle_list_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    manager = ctx.manager
    total = manager.get_total_tracks()
    if total == 0:
        log("No tracks loaded", "warning")
        return ctx, True

    names = [manager.get_display_name(i) for i in range(total)]
    durations = [
        meta.duration if meta is not None else 0
        for meta in (manager.get_track_metadata(i) for i in range(total))
    ]
    _console(ctx).print(render_playlist(names, manager.get_current_index(), durations))
    return ctx, True


def handle_remove_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    if not args:
        log("Usage: remove <track number>", "warning")
        return ctx, True
    removed = ctx.manager.remove_track(parse_track_number(args[0]))
    log(f"Removed: {removed.name}")
    return ctx, True


async def handle_save_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    await ctx.manager.save_state(ctx.storage, ctx.state_key)
    log("💾 Playback state saved")
    return ctx, True

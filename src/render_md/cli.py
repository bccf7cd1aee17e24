"""CLI entry point for render-md."""

import argparse
import dataclasses
import json
import logging
import shutil
import sys
import time
from pathlib import Path

import render_md.io.logging_setup
import render_md.io.session_log
from render_md.app.commands import handle_command
from render_md.app.config import (
    FLAG_CODE_BG,
    FLAG_CODE_INDENT,
    FLAG_CODE_LABEL,
    FLAG_HIDE_FENCES,
    FLAG_NO_TUI,
    FLAG_STRIP_HEADINGS,
    FLAG_TUI,
    FLAG_UNFENCE,
    ConfigService,
    resolve,
)
from render_md.app.print_mode import ContentBlock, Message, PrintModeHook, PrintSettings, PRINT_STYLES
from render_md.palette import DEFAULT_THEME_NAME, build_theme_colors, palette_for_theme, theme_by_name

logger = logging.getLogger(__name__)

# argparse dest -> startup flag name
_PIPELINE_FLAGS = {
    "commonmark_tui": FLAG_TUI,
    "no_commonmark_tui": FLAG_NO_TUI,
    "commonmark_tui_unfence": FLAG_UNFENCE,
    "commonmark_tui_hide_fences": FLAG_HIDE_FENCES,
    "commonmark_tui_code_label": FLAG_CODE_LABEL,
    "commonmark_tui_code_bg": FLAG_CODE_BG,
    "commonmark_tui_code_indent": FLAG_CODE_INDENT,
    "commonmark_tui_strip_heading_prefix": FLAG_STRIP_HEADINGS,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render markdown for the terminal")
    parser.add_argument(
        "path",
        nargs="?",
        default="-",
        help="Markdown file to render (default: stdin)",
    )
    parser.add_argument("--tui", action="store_true", default=False, help="Open the interactive viewer")
    parser.add_argument(
        "--session-log",
        type=str,
        default=None,
        help="Session log holding persisted settings (default: $XDG_STATE_HOME/render-md/session.jsonl)",
    )
    parser.add_argument(
        "--theme",
        type=str,
        default=DEFAULT_THEME_NAME,
        help=f"Textual theme for colors (default: {DEFAULT_THEME_NAME})",
    )
    parser.add_argument(
        "--mode",
        choices=("text", "json", "rpc"),
        default="text",
        help="Output mode; json/rpc emit raw markdown (default: text)",
    )
    parser.add_argument(
        "--command",
        type=str,
        default=None,
        help='Run one settings command, e.g. --command "indent 2" or --command status',
    )

    # Print mode rendering
    parser.add_argument(
        "--commonmark",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Render markdown in print mode (default: enabled)",
    )
    parser.add_argument(
        "--commonmark-style",
        choices=PRINT_STYLES,
        default="auto",
        help="Print mode style: auto | ansi | plain (default: auto)",
    )
    parser.add_argument(
        "--commonmark-width",
        type=str,
        default="auto",
        help="Print mode width: auto | <n> (default: auto)",
    )

    # Pipeline options (on|off strings; unset means "not given")
    parser.add_argument("--commonmark-tui", type=str, default=None, help="Apply the render-md transforms (on|off, default: on)")
    parser.add_argument(
        "--no-commonmark-tui",
        action="store_const",
        const="on",
        default=None,
        help="Disable the render-md transforms (overrides --commonmark-tui)",
    )
    parser.add_argument("--commonmark-tui-unfence", type=str, default=None, help="Unwrap an outer ```markdown fence (on|off, default: on)")
    parser.add_argument("--commonmark-tui-hide-fences", type=str, default=None, help="Hide ``` fences for code blocks (on|off, default: on)")
    parser.add_argument(
        "--commonmark-tui-code-label",
        type=str,
        default=None,
        help="When hiding fences, show a language label like ‹ts› (on|off, default: off)",
    )
    parser.add_argument(
        "--commonmark-tui-code-bg",
        type=str,
        default=None,
        help="Code block background (off|selectedBg|toolPendingBg|customMessageBg|userMessageBg, default: toolPendingBg)",
    )
    parser.add_argument("--commonmark-tui-code-indent", type=str, default=None, help="Code indentation spaces (0..8, default: 4)")
    parser.add_argument(
        "--commonmark-tui-strip-heading-prefix",
        type=str,
        default=None,
        help="Hide heading hash prefixes (###) for H3+ (on|off, default: on)",
    )
    return parser


def flags_from_args(args: argparse.Namespace) -> dict[str, object]:
    """Startup flag layer: only options the user actually gave."""
    flags: dict[str, object] = {}
    for dest, flag in _PIPELINE_FLAGS.items():
        value = getattr(args, dest)
        if value is not None:
            flags[flag] = value
    return flags


def read_markdown(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _make_safe_persist(log: render_md.io.session_log.SessionLog):
    def _safe_persist(snapshot: dict) -> None:
        try:
            log.persist_settings(snapshot)
        except OSError:
            logger.exception("Failed to persist render-md settings to %s", log.path)

    return _safe_persist


def _print_notice(message: str, severity: str) -> None:
    print(message, file=sys.stderr)


def run_print_mode(args: argparse.Namespace, markdown: str, flags: dict, persisted: dict | None) -> int:
    options = resolve(flags=flags, persisted=persisted)
    colors = build_theme_colors(theme_by_name(args.theme))
    hook = PrintModeHook(
        PrintSettings(
            enabled=bool(args.commonmark),
            mode=args.mode,
            width_flag=args.commonmark_width,
            style_flag=args.commonmark_style,
        ),
        colors,
        options=options,
    )
    message = Message(role="assistant", content=[ContentBlock(type="text", text=markdown)], timestamp=time.time())
    columns = shutil.get_terminal_size((80, 24)).columns if sys.stdout.isatty() else None
    hook.on_agent_end([message], has_ui=False, columns=columns, isatty=sys.stdout.isatty())

    if args.mode == "text":
        print("\n".join(block.text for block in message.content if block.type == "text"))
    else:
        print(json.dumps(dataclasses.asdict(message)))
    hook.on_context([message])
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # [LAW:single-enforcer] Runtime logger configuration is centralized in io.logging_setup.
    log_runtime = render_md.io.logging_setup.configure(stderr=not args.tui)
    logger.info("logging configured level=%s file=%s", log_runtime.level_name, log_runtime.file_path)

    log = render_md.io.session_log.SessionLog(args.session_log)
    render_md.io.session_log.migrate_legacy_settings(log)
    persisted = render_md.io.session_log.read_persisted_settings(log.entries())
    flags = flags_from_args(args)

    if args.command is not None:
        service = ConfigService(palette_for_theme(args.theme), notify=_print_notice)
        service.start_session(flags, persisted)
        service.add_persist_listener(_make_safe_persist(log))
        handle_command(args.command, service, _print_notice, has_ui=True)
        return 0

    try:
        markdown = read_markdown(args.path)
    except OSError as e:
        print(f"render-md: cannot read {args.path}: {e}", file=sys.stderr)
        return 1

    if not args.tui:
        return run_print_mode(args, markdown, flags, persisted)

    from render_md.tui.app import RenderMdApp

    service = ConfigService(palette_for_theme(args.theme))
    service.start_session(flags, persisted, has_ui=True)
    service.add_persist_listener(_make_safe_persist(log))
    RenderMdApp(markdown, service, theme_name=args.theme).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())

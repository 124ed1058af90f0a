from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from colrecon.config.loader import ConfigError, load_registry
from colrecon.logging.event_log import EventLogBuffer
from colrecon.logging.init import log_summary, setup_logging
from colrecon.models.reconciliation_result import ReconciledImport
from colrecon.services.errors import ReconciliationError
from colrecon.services.scheduler import ManualScheduler
from colrecon.services.session import ReconciliationSession
from colrecon.services.summary import render_summary_line
from colrecon.sources.reader import SourceHeaderError, UnsupportedFileError, read_source_table

"""CLI entrypoint.

Reconciles one uploaded file against the schema registry without a review
UI: bootstrap auto-matches, scripted --ignore / --assign intents stand in
for the user, then the completeness gate decides whether the reconciled
mapping is handed off (printed as JSON) or blocked.
"""

EXIT_HANDED_OFF = 0
EXIT_FATAL = 1
EXIT_BLOCKED = 2

DEFAULT_REGISTRY_PATH = Path("config/registry.yml")
REGISTRY_ENV = "COLRECON_REGISTRY"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (values override the process environment)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Reconcile spreadsheet columns against a target schema")
    p.add_argument("file", type=Path, help="CSV or XLSX file to reconcile")
    p.add_argument("--registry", type=Path, default=None, help=f"Schema registry YAML (default: ${REGISTRY_ENV} or {DEFAULT_REGISTRY_PATH})")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, preview rows & bootstrap matches then exit")
    p.add_argument("--ignore", action="append", default=[], metavar="HEADER", help="Mark a column as 'do not import' (repeatable)")
    p.add_argument("--assign", action="append", default=[], metavar="HEADER=FIELD_ID", help="Match a column to a target field (repeatable)")
    p.add_argument("--event-log", action="store_true", help="Write session events to logs/session-*.log")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _resolve_registry_path(arg: Path | None) -> Path:
    if arg is not None:
        return arg
    env = os.getenv(REGISTRY_ENV)
    return Path(env) if env else DEFAULT_REGISTRY_PATH


def _inspect_data(session: ReconciliationSession) -> int:
    print(f"FILE: {session.file_name}")
    for card in session.cards():
        match = card.match.id if card.match is not None else "UNMATCHED"
        print(f"  COLUMN[{card.index}]: {card.header} -> {match}")
        print("    sample_rows=", list(card.preview))
    print(session.status_message())
    return 0


def _apply_intents(session: ReconciliationSession, ignores: list[str], assigns: list[str]) -> None:
    """Apply scripted intents; a conflicting assign is resolved for the requester."""
    for header in ignores:
        session.toggle_ignore(header)
    for raw in assigns:
        header, sep, field_id = raw.rpartition("=")
        if not sep or not header or not field_id:
            raise ReconciliationError(f"invalid --assign value (expected HEADER=FIELD_ID): {raw!r}")
        conflict = session.try_assign(header, field_id)
        if conflict is not None:
            session.select_header_to_resolve(header)
            session.resolve()


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストで [] を渡すケース)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    registry_path = _resolve_registry_path(args.registry)
    try:
        cfg = load_registry(registry_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL
    try:
        table = read_source_table(args.file, preview_rows=cfg.settings.preview_rows)
    except (SourceHeaderError, UnsupportedFileError) as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL

    handed_off: list[ReconciledImport] = []
    event_log = EventLogBuffer() if args.event_log else None
    session = ReconciliationSession(
        cfg.schema,
        table,
        settings=cfg.settings,
        scheduler=ManualScheduler(),
        on_handoff=handed_off.append,
        event_log=event_log,
    )
    logger.info(f"Reconciling {table.file_name}: {len(table)} columns, {len(cfg.schema)} target fields")

    try:
        if args.inspect_data:
            return _inspect_data(session)

        try:
            _apply_intents(session, args.ignore, args.assign)
        except ReconciliationError as e:
            logger.error(f"intent: {e}")
            return EXIT_FATAL

        logger.info(session.status_message())
        result = session.proceed()
        if result.blocked:
            logger.warning("missing required fields:")
            for f in result.missing_required:
                print(f"  - {f.display_name}: {f.description}")
            exit_code = EXIT_BLOCKED
        else:
            payload = handed_off[0]
            print(json.dumps({"file": payload.file_name, "mapping": payload.mapping}, ensure_ascii=False, indent=2))
            exit_code = EXIT_HANDED_OFF

        summary_line = render_summary_line(session.summary())
        # log_summary が "SUMMARY " を付与するので除去
        log_summary(summary_line[len("SUMMARY "):])
        return exit_code
    finally:
        session.close()
        if event_log is not None:
            path = event_log.flush()
            logger.debug(f"event log: {path}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

"""CLI for resolving logo filenames to catalog schools and renaming them."""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
import structlog

from logomatch.cache import ResultCache
from logomatch.config import RenameConfig
from logomatch.exceptions import LogomatchError
from logomatch.executor import BatchExecutor
from logomatch.index import CatalogIndex
from logomatch.io import list_sources, load_catalog
from logomatch.logging import configure_logging
from logomatch.matcher import Matcher
from logomatch.normalize import start_case
from logomatch.presentation import TerminalPresenter, format_location, severity
from logomatch.selections import SelectionStore, positional_resolver
from logomatch.session import PromptCache, ResolutionSession


def _build_config(args: argparse.Namespace) -> RenameConfig:
    """Build a RenameConfig from CLI args."""
    config = RenameConfig()
    paths = config.paths
    paths.catalog = args.catalog
    paths.sources = args.sources
    paths.selections = args.selections
    paths.prompts = args.prompts
    paths.output = args.output
    if args.ext:
        paths.extensions = tuple(e if e.startswith(".") else f".{e}" for e in args.ext)

    search = config.search
    search.threshold = args.threshold
    search.scorer = args.scorer
    search.limit = args.limit
    if args.keys:
        search.keys = tuple(args.keys)
    config.cache.max_size = args.cache_size
    config.executor.max_workers = args.workers
    config.session.max_workers = args.workers
    return config


def _build_matcher(config: RenameConfig) -> Matcher:
    log = structlog.get_logger()
    entries = load_catalog(config.paths.catalog)
    index = CatalogIndex.build(entries, config.search.keys)
    log.info("matcher_ready", entries=len(index), threshold=config.search.threshold)
    return Matcher(index, config.search, ResultCache(config.cache))


def _open_store(config: RenameConfig) -> SelectionStore:
    store = SelectionStore(Path(config.paths.selections))
    store.load()
    return store


def _confirm(message: str) -> bool:
    answer = input(f"{message} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def cmd_search(args: argparse.Namespace) -> int:
    config = _build_config(args)
    matcher = _build_matcher(config)
    candidates = matcher.search(args.query)
    if not candidates:
        print(f"No schools match '{args.query}'.")
        return 0

    df = pd.DataFrame(
        [
            {
                "name": c.entry.name,
                "location": format_location(c.entry),
                "score": round(c.score, 4),
                "confidence": severity(c.score),
                "field": c.matched_key,
            }
            for c in candidates
        ]
    )
    print(df.to_string(index=False))
    print(f"\n{len(candidates)} results found")
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    """Run a terminal resolution session over the source files."""
    config = _build_config(args)
    sources = list_sources(config.paths.sources, config.paths.extensions)
    matcher = _build_matcher(config)
    store = _open_store(config)

    if args.unresolved:
        sources = [s for s in sources if s not in store]
        print(f"{len(sources)} source files without a selection")

    prompt_cache = None if args.no_prompt_cache else PromptCache(config.paths.prompts)
    session = ResolutionSession(matcher, store, config, prompt_cache)
    presenter = TerminalPresenter(preselected=store.snapshot())

    try:
        summary = session.run(sources, presenter, progress=True)
    except KeyboardInterrupt:
        print(f"\nAborted. Decisions made so far are saved in {store.path}.")
        return 130

    print(
        f"\nRecorded {summary.recorded} of {summary.requests} files, "
        f"skipped {len(summary.skipped)}."
    )
    if summary.rejected_names:
        print(f"Ignored {summary.rejected_names} names not found in the catalog.")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Launch the browser review UI."""
    import webbrowser

    import uvicorn

    from logomatch.server import create_app

    log = structlog.get_logger()
    config = _build_config(args)
    config.search.debounce_seconds = args.debounce
    sources = list_sources(config.paths.sources, config.paths.extensions)
    matcher = _build_matcher(config)
    store = _open_store(config)

    log.info("review_server_start", port=args.port, sources=len(sources))
    app = create_app(
        matcher,
        store,
        sources,
        sources_dir=config.paths.sources,
        ui_dir=args.ui_dir,
    )

    url = f"http://localhost:{args.port}"
    print(f"Starting review UI at {url}")
    if not args.no_browser:
        webbrowser.open(url)
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
    return 0


def cmd_fix(args: argparse.Namespace) -> int:
    """Re-key selections stored by list position onto file names."""
    config = _build_config(args)
    sources = list_sources(config.paths.sources, config.paths.extensions)
    store = _open_store(config)

    result = store.reconcile(positional_resolver(sources))
    if not result.changed:
        print("No selections to be fixed.")
        return 0
    print(
        f"{result.fixed} entries fixed, {result.dropped} had no corresponding file "
        f"and were dropped ({result.unchanged} already keyed by file name)."
    )
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    config = _build_config(args)
    store = _open_store(config)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    target = Path(args.path or f"rename_school_logos_{stamp}.json")
    store.export(target)
    print(f"Exported {len(store)} selections to {target}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    config = _build_config(args)
    store = _open_store(config)
    if len(store) and not (args.yes or _confirm(f"Replace {len(store)} stored selections?")):
        print("Import cancelled.")
        return 1
    try:
        count = store.restore(args.path)
    except (OSError, ValueError) as e:
        print(f"Error: cannot import {args.path}: {e}", file=sys.stderr)
        return 1
    print(f"Imported {count} selections into {store.path}")
    return 0


def cmd_apply(args: argparse.Namespace) -> int:
    """Copy every selected source file to its canonical output name."""
    config = _build_config(args)
    store = _open_store(config)

    if not args.no_prune:
        matcher = _build_matcher(config)
        dropped = store.prune(matcher.index.names())
        if dropped:
            print(f"Dropped {dropped} selected names that are no longer in the catalog.")

    selections = store.snapshot()
    if not selections:
        print("Nothing to copy: no selections stored.")
        return 0

    output = Path(config.paths.output)
    confirmed = args.yes
    if not confirmed and output.exists() and any(output.iterdir()):
        confirmed = _confirm(f"Clear everything in {output} before copying?")

    executor = BatchExecutor(config.executor)
    report = executor.run(
        selections,
        config.paths.sources,
        output,
        confirmed=confirmed,
        progress=True,
    )

    print(f"\nCopied {len(report.succeeded)} of {len(report.results)} files to {output}")
    for failure in report.failed:
        print(f"  FAILED {failure.operation.src.name} -> {failure.operation.dst.name}: {failure.error}")
    return 0 if report.ok else 1


def cmd_clean(args: argparse.Namespace) -> int:
    config = _build_config(args)
    if PromptCache(config.paths.prompts).clean():
        print(f"Removed prompt cache {config.paths.prompts}")
    else:
        print("No prompt cache to remove.")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show which source files have selections."""
    config = _build_config(args)
    sources = list_sources(config.paths.sources, config.paths.extensions)
    store = _open_store(config)
    selections = store.snapshot()

    rows = [
        {
            "source": s,
            "selected": len(selections.get(s, [])),
            "names": "; ".join(start_case(n) for n in selections.get(s, [])),
        }
        for s in sources
    ]
    stale = sorted(k for k in selections if k not in set(sources))
    if rows:
        df = pd.DataFrame(rows)
        if args.unresolved:
            df = df[df["selected"] == 0]
        print(df.to_string(index=False))

    resolved = sum(1 for r in rows if r["selected"])
    print(f"\nResolved: {resolved}/{len(sources)}")
    if stale:
        print(f"Selections without a source file: {len(stale)} (run 'logomatch fix')")
    return 0


def main(argv: list[str] | None = None) -> int:
    defaults = RenameConfig()

    # Parent parser with global options (inherited by all subcommands)
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (default: LOG_LEVEL env var or INFO)",
    )
    parent_parser.add_argument("--catalog", default=defaults.paths.catalog, help="Path to the school catalog (JSON/JSONL/CSV/XLSX)")
    parent_parser.add_argument("--sources", default=defaults.paths.sources, help="Directory of logo files to resolve")
    parent_parser.add_argument("--selections", default=defaults.paths.selections, help="Path to the selections file")
    parent_parser.add_argument("--prompts", default=defaults.paths.prompts, help="Path to the prompt cache")
    parent_parser.add_argument("--output", default=defaults.paths.output, help="Output directory for renamed logos")
    parent_parser.add_argument("--ext", action="append", metavar="EXT", help="Source file extension (repeatable, default: .png)")
    parent_parser.add_argument("--threshold", type=float, default=defaults.search.threshold, help="Maximum distance kept (0-1)")
    parent_parser.add_argument("--scorer", default=defaults.search.scorer, help="rapidfuzz scorer (WRatio, ratio, token_set_ratio, ...)")
    parent_parser.add_argument("--limit", type=int, default=defaults.search.limit, help="Maximum candidates per search")
    parent_parser.add_argument("--key", dest="keys", action="append", metavar="FIELD", help="Catalog field to index (repeatable: name, website, alias)")
    parent_parser.add_argument("--cache-size", type=int, default=defaults.cache.max_size, help="Cap on cached queries (default: unbounded)")
    parent_parser.add_argument("--workers", type=int, default=None, help="Worker threads for lookups and copies")

    parser = argparse.ArgumentParser(description="Match logo filenames to schools and rename them")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", parents=[parent_parser], help="Search the catalog")
    search_parser.add_argument("query", help="Text to search for")
    search_parser.set_defaults(func=cmd_search)

    resolve_parser = subparsers.add_parser("resolve", parents=[parent_parser], help="Pick matching schools for each logo in the terminal")
    resolve_parser.add_argument("--unresolved", action="store_true", help="Only prompt for files without a selection")
    resolve_parser.add_argument("--no-prompt-cache", action="store_true", help="Recompute matches instead of using the prompt cache")
    resolve_parser.set_defaults(func=cmd_resolve)

    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Launch the browser review UI")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port (default: 8765)")
    serve_parser.add_argument("--ui-dir", default=None, help="Directory of a built front end to serve at /")
    serve_parser.add_argument("--debounce", type=float, default=defaults.search.debounce_seconds, help="Search debounce in seconds")
    serve_parser.add_argument("--no-browser", action="store_true", help="Do not open a browser window")
    serve_parser.set_defaults(func=cmd_serve)

    fix_parser = subparsers.add_parser("fix", parents=[parent_parser], help="Migrate position-keyed selections to file names")
    fix_parser.set_defaults(func=cmd_fix)

    export_parser = subparsers.add_parser("export", parents=[parent_parser], help="Write a backup of the selections")
    export_parser.add_argument("path", nargs="?", help="Target file (default: rename_school_logos_<timestamp>.json)")
    export_parser.set_defaults(func=cmd_export)

    import_parser = subparsers.add_parser("import", parents=[parent_parser], help="Replace the selections with a backup")
    import_parser.add_argument("path", help="Exported selections file")
    import_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask before replacing")
    import_parser.set_defaults(func=cmd_import)

    apply_parser = subparsers.add_parser("apply", parents=[parent_parser], help="Copy logos to their school names")
    apply_parser.add_argument("--yes", "-y", action="store_true", help="Clear the output directory without asking")
    apply_parser.add_argument("--no-prune", action="store_true", help="Keep selected names missing from the catalog")
    apply_parser.set_defaults(func=cmd_apply)

    clean_parser = subparsers.add_parser("clean", parents=[parent_parser], help="Delete the prompt cache")
    clean_parser.set_defaults(func=cmd_clean)

    status_parser = subparsers.add_parser("status", parents=[parent_parser], help="Show selection progress")
    status_parser.add_argument("--unresolved", action="store_true", help="Only list files without a selection")
    status_parser.set_defaults(func=cmd_status)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except LogomatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

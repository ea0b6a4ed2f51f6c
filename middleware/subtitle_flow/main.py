"""Subtitle Flow entrypoint."""

from __future__ import annotations

from typing import List, Optional
import argparse
import logging
import os
import sys
import time

from subtitle_flow.pipelines.batch import BatchCoordinator
from subtitle_flow.pipelines.context import build_context
from subtitle_flow.registry.config_store import ConfigError, resolve_config
from subtitle_flow.utils.log_protocol import ErrorLog, emit_error

logger = logging.getLogger("subtitle_flow")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subtitle-flow",
        description="Translate .vtt/.srt subtitle files line by line via LibreTranslate",
    )
    parser.add_argument("--input", help="Path to a subtitle file or directory")
    parser.add_argument("--lang", dest="target_lang", help="Target translation language (default: ru)")
    parser.add_argument("--workers", type=int, help="Number of parallel workers (default: 5)")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--endpoint", help="Translation endpoint URL")
    parser.add_argument("--api-key", dest="api_key", help="Translation service API key")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds (default: 10)")
    parser.add_argument("--error-log", dest="error_log", help="Error log path (default: translate_errors.log)")
    parser.add_argument("--cache-file", dest="cache_file", help="Persist translation cache to this JSON file")
    parser.add_argument("--no-progress", action="store_true", help="Disable JSON progress output")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )

    if not args.input:
        print("Please specify path with --input and language with --lang")
        parser.print_usage()
        return 1

    cli_values = {
        "target_lang": args.target_lang,
        "workers": args.workers,
        "endpoint": args.endpoint,
        "api_key": args.api_key,
        "timeout": args.timeout,
        "error_log": args.error_log,
        "cache_file": args.cache_file,
    }
    try:
        config = resolve_config(args.config, cli_values)
    except ConfigError as e:
        print(f"[Error] {e}")
        return 1

    try:
        error_log = ErrorLog(config.error_log)
    except OSError as e:
        print(f"Failed to open error log file: {e}")
        return 1

    logger.info(f"Endpoint: {config.endpoint}")
    logger.info(f"Target language: {config.target_lang}, workers: {config.workers}")

    with error_log:
        if not os.path.exists(args.input):
            error_log.write(f"Access error: {args.input} does not exist")
            return 1

        exit_code = 0
        start = time.time()
        with build_context(config, error_log, emit_progress=not args.no_progress) as ctx:
            coordinator = BatchCoordinator(ctx)
            try:
                coordinator.run(args.input, config.target_lang)
            except Exception as e:
                error_log.write(f"Processing error: {e}")
                emit_error(str(e), title="Subtitle Flow Fatal Error")
                exit_code = 1
            finally:
                if config.cache_file and not ctx.cache.save():
                    error_log.write(f"Failed to save cache {config.cache_file}")
                ctx.tracker.emit_final_stats(
                    cache_hits=ctx.cache.get_stats()["hits"],
                    total_requests=ctx.request_count,
                )

            snap = ctx.tracker.snapshot()
            print(
                f"\n[Batch] Completed: {snap['files']} files, {snap['translated']} lines "
                f"in {time.time() - start:.2f}s"
            )
            if snap["failed"] or snap["failed_files"]:
                print(f"[Batch] See {error_log.path} for {error_log.count} error(s)")
        return exit_code


if __name__ == "__main__":
    raise SystemExit(main())

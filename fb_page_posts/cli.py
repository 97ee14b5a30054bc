from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from .collector import get_page
from .config import config_sha256, load_config, resolve_runtime_secrets
from .errors import ConfigError, ExportError, GraphApiError, TimeBoundError
from .export_csv import export_posts_csv
from .graph_client import Transport
from .run_log import RunLogger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fb_page_posts")

    subparsers = parser.add_subparsers(dest="command", required=True)

    page = subparsers.add_parser(
        "page",
        help="Download posts from a public Facebook page to CSV.",
    )
    page.add_argument("--config", required=True, help="Path to YAML config file.")
    page.add_argument("--page", required=True, help="Page id or page name.")
    page.add_argument("--out", required=True, help="Output CSV path.")
    page.add_argument("--n", type=int, default=25, help="Number of posts to return.")
    page.add_argument(
        "--since",
        default=None,
        help="Lower bound on post updated time (UNIX timestamp, date or relative expression).",
    )
    page.add_argument(
        "--until",
        default=None,
        help="Upper bound on post updated time (UNIX timestamp, date or relative expression).",
    )
    page.add_argument(
        "--feed",
        action="store_true",
        help="Include posts made on the page by others.",
    )
    page.add_argument(
        "--reactions",
        action="store_true",
        help="Add love/haha/wow/sad/angry counts.",
    )
    page.add_argument("--quiet", action="store_true", help="Do not print progress.")
    page.add_argument("--api", default=None, help="Graph API version, e.g. v2.8.")
    page.add_argument("--log", default=None, help="JSONL run log path (default: next to --out).")
    page.add_argument(
        "--offline",
        action="store_true",
        help="Run without network calls against a synthetic page.",
    )
    page.set_defaults(_handler=_cmd_page)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _cmd_page(args: argparse.Namespace) -> int:
    out_path = Path(args.out)
    log_path = Path(args.log) if args.log else out_path.with_suffix(".log.jsonl")

    with RunLogger.open(log_path, overwrite=True) as log:
        log.info(
            "page_command_started",
            config_path=str(args.config),
            page=args.page,
            n=args.n,
            feed=bool(args.feed),
            reactions=bool(args.reactions),
            offline=bool(args.offline),
        )

        try:
            cfg = load_config(args.config)

            transport: Transport | None = None
            if bool(getattr(args, "offline", False)):
                from .offline import OfflineGraphTransport

                transport = OfflineGraphTransport()
                token = "offline"
            else:
                token = resolve_runtime_secrets(cfg).graph_token

            log.info(
                "config_loaded",
                config_path=str(args.config),
                config_sha256=config_sha256(cfg),
                token_env=cfg.graph.token_env,
            )

            frame = get_page(
                args.page,
                token,
                n=args.n,
                since=args.since,
                until=args.until,
                feed=bool(args.feed),
                reactions=bool(args.reactions),
                verbose=not bool(args.quiet),
                api=args.api,
                transport=transport,
                config=cfg,
                logger=log,
            )

            export_posts_csv(frame, out_path)
            log.info("export_csv_completed", path=str(out_path), rows=len(frame))

            print(f"rows={len(frame)}")
            print(f"out={out_path}")
            print(f"run_log={log_path}")
            return 0
        except Exception as e:
            log.exception("page_command_failed", exc=e)
            raise


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except (ConfigError, TimeBoundError, ValueError) as e:
        _eprint(str(e))
        return 2
    except (GraphApiError, ExportError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1

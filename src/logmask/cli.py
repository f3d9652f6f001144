"""CLI interface for logmask.

Usage:
    # Mask a log (stdin: raw text, stdout: JSON {maskedLog, redactions})
    cat app.log | python -m logmask.cli scan

    # Masked text only
    cat app.log | python -m logmask.cli mask > app_masked.log

    # Mask a file on disk (upload policy applies), writes <name>_masked.log
    python -m logmask.cli file app.log

    # Approximate ledger from a before/after pair
    python -m logmask.cli diff app.log app_masked.log

Config is read from --config, else $LOGMASK_CONFIG, else defaults.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

from .config import create_redactor, create_upload_policy, load_default, load_from_yaml
from .errors import LogMaskError, UnreadableFile
from .ledger import ledger_from_diff
from .upload import content_hash, masked_filename

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> dict:
    cfg = load_from_yaml(args.config) if args.config else load_default()
    if args.strict:
        cfg["strict_values"] = True
    if args.card_policy:
        cfg["card_policy"] = args.card_policy
    if args.skip_categories:
        names = (c.strip() for c in args.skip_categories.split(","))
        cfg["skip_categories"] = {n.upper() for n in names if n}
    if args.allow_list:
        cfg["allow_list"] = set(args.allow_list.split(","))
    return cfg


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise UnreadableFile(str(path), "no such file") from e
    except UnicodeDecodeError as e:
        raise UnreadableFile(str(path), "not UTF-8 text") from e
    except OSError as e:
        raise UnreadableFile(str(path), e.strerror or str(e)) from e


def cmd_scan(args: argparse.Namespace) -> None:
    """Mask stdin and print the full result as JSON."""
    redactor = create_redactor(_load(args))
    result = redactor.scan(sys.stdin.read())
    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_mask(args: argparse.Namespace) -> None:
    """Mask stdin and print only the masked text."""
    redactor = create_redactor(_load(args))
    sys.stdout.write(redactor.scan(sys.stdin.read()).masked_text)


def cmd_file(args: argparse.Namespace) -> None:
    """Mask a file, write it beside the original, print the ledger."""
    cfg = _load(args)
    path = Path(args.path)
    if not path.is_file():
        raise UnreadableFile(str(path), "no such file")
    create_upload_policy(cfg).check(path.name, path.stat().st_size)

    text = _read_text(path)
    result = create_redactor(cfg).scan(text)

    out_path = path.with_name(masked_filename(path.name))
    out_path.write_text(result.masked_text, encoding="utf-8")
    logger.info("wrote %s (%d redactions)", out_path, len(result.redactions))

    output = result.to_dict()
    del output["maskedLog"]
    output["fileHash"] = content_hash(text)
    output["output"] = str(out_path)
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_diff(args: argparse.Namespace) -> None:
    """Print an approximate ledger for an original/masked file pair."""
    original = _read_text(Path(args.original))
    masked = _read_text(Path(args.masked))
    records = ledger_from_diff(original, masked)
    json.dump({"redactions": [r.to_dict() for r in records]}, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logmask",
        description="Mask sensitive values in log files",
    )
    parser.add_argument("--config", default=None, help="YAML config path")
    parser.add_argument("--strict", action="store_true",
                        help="Mask every quoted value except allow-listed keys")
    parser.add_argument("--card-policy", choices=("always", "payment_context"), default=None,
                        help="When to mask credit-card-shaped numbers")
    parser.add_argument("--skip-categories", default="",
                        help="Comma-separated categories to skip")
    parser.add_argument("--allow-list", default="", help="Comma-separated values to never redact")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("scan", help="Mask stdin, print JSON result")
    sub.add_parser("mask", help="Mask stdin, print masked text")
    p_file = sub.add_parser("file", help="Mask a file on disk")
    p_file.add_argument("path")
    p_diff = sub.add_parser("diff", help="Approximate ledger from original and masked files")
    p_diff.add_argument("original")
    p_diff.add_argument("masked")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "scan": cmd_scan,
        "mask": cmd_mask,
        "file": cmd_file,
        "diff": cmd_diff,
    }
    try:
        cmds[args.command](args)
    except LogMaskError as e:
        sys.stderr.write(f"logmask: {e}\n")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Command line front end: expand the suffix macro calls of one Python file"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List
from typing import Optional

from bisync_suffix.emit import NoBranchSelected
from bisync_suffix.expander import expand_source
from bisync_suffix.expander import MACRO_NAME
from bisync_suffix.features import ENV_VAR
from bisync_suffix.features import Features
from bisync_suffix.parse import MalformedInvocation

__all__ = ["main", "build_parser"]

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bisync-suffix",
        description="Expand suffix(\"_suffix\", expr) macro calls for an async or a blocking build.",
    )
    parser.add_argument("file", type=Path, help="Python source file to expand")
    parser.add_argument(
        "-f",
        "--feature",
        dest="features",
        action="append",
        metavar="FEATURE",
        help=f"enable features ('{Features.ASYNC}' or '{Features.BLOCKING}'), comma separated. Repeatable. "
        f"Defaults to the comma separated list in ${ENV_VAR}",
    )
    parser.add_argument("-o", "--output", type=Path, help="write the expanded source here instead of stdout")
    parser.add_argument("--macro-name", default=MACRO_NAME, help="name of the macro function (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every expansion and rename")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.features:
        features = Features.from_names(name for value in args.features for name in value.split(","))
    else:
        features = Features.from_env()
    source = args.file.read_text()

    try:
        expanded = expand_source(source, features, str(args.file), args.macro_name)
    except MalformedInvocation as e:
        print(f"{e.filename}:{e.lineno}:{e.offset}: {e.msg}", file=sys.stderr)
        if e.text:
            print(f"    {e.text.strip()}", file=sys.stderr)
        return 1
    except NoBranchSelected as e:
        print(f"{args.file}: {e}", file=sys.stderr)
        return 1

    if args.output is None:
        sys.stdout.write(expanded + "\n")
    else:
        args.output.write_text(expanded + "\n")
        log.info("wrote %s", args.output)
    return 0

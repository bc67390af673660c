"""CLI entrypoints for pluginpack commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .archives import prune_archives
from .config import ConfigError, ProjectType, load_config
from .logging import configure_logging
from .orchestrator import BuildError, Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write log output to this file.",
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    _add_log_file_option(parser, suppress_default=True)
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the plugin project root (defaults to current directory).",
    )
    parser.add_argument(
        "--keep",
        type=int,
        default=None,
        help="Number of recent archives to keep (overrides .pluginpack.yml).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pluginpack",
        description="Version, package and archive plugin projects for deployment.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Bump the version, prepare the build tree and create archives.",
    )
    _add_common_options(build_parser)
    build_parser.add_argument(
        "--project-type",
        choices=[member.value for member in ProjectType],
        default=None,
        help="Front-end framework of the project (overrides .pluginpack.yml).",
    )

    prune_parser = subparsers.add_parser(
        "prune",
        help="Delete old archives beyond the retention count.",
    )
    _add_common_options(prune_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for pluginpack commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(
            Path(args.path),
            project_type=getattr(args, "project_type", None),
            archives_to_keep=args.keep,
        )
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")

    if args.command == "build":
        try:
            result = Orchestrator(config).run()
        except BuildError as exc:
            parser.exit(1, f"pluginpack build failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Built {result.plugin_name} {result.version}")
        for outcome in result.archives:
            if outcome.created:
                print(f"  {_relativize(outcome.path)} ({outcome.size} bytes)")
    elif args.command == "prune":
        try:
            deleted = prune_archives(config.archive_dir, config.archives_to_keep)
        except OSError as exc:
            parser.exit(1, f"pluginpack prune failed: {exc}\n")
        print(f"Removed {len(deleted)} old archive(s)")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

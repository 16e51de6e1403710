"""
Flow CLI tool for Flowkit.

Compiles design files and drives the version store from a shell:
- compile: Compile a design file into an execution plan
- validate: Report validation issues of a design file
- init: Create a bot from a design file
- apply: Apply a JSON Patch file to a bot's draft
- promote: Point production at a version
- versions: List a bot's versions
- plan: Compile a stored version
- serve: Run the HTTP API

Usage:
    flowkit compile design.yaml --channel whatsapp
    flowkit init support-bot design.json
    flowkit apply support-bot change.json --expected 01HV...
    flowkit promote support-bot 01HV...

Invariants:
    - Exit code 0 on success, 1 when the design has blocking issues,
      2 on any other Flowkit error or an unreadable input file
    - JSON output is deterministic (sorted keys)

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for CI parsing
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from ..adapter import default_adapters
from ..compile.compiler import CompileResult, Compiler
from ..component.registry import default_registry
from ..config import Settings, get_settings
from ..design.codec import load_design_file
from ..design.types import DesignDoc
from ..errors import FlowkitError, ValidationFailedError
from ..logging_setup import setup_logging
from ..store.atomic import AtomicStore
from ..store.sqlite import SqliteDesignRepository
from ..template.policy import TemplatePolicy

EXIT_OK = 0
EXIT_BLOCKED = 1
EXIT_ERROR = 2


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)


class FlowCLI:
    """CLI operations over files and a SQLite-backed store.

    Example:
        >>> cli = FlowCLI(Settings(data_dir="/tmp/flows"))
        >>> result = cli.compile_file("design.yaml")
        >>> await cli.init("bot1", "design.yaml")
    """

    def __init__(self, settings: Settings, store: AtomicStore | None = None) -> None:
        self.settings = settings
        self.registry = default_registry()
        self.registry.freeze()
        self.adapters = default_adapters()
        self.compiler = Compiler(
            policy=TemplatePolicy.from_settings(settings),
            plan_schema=settings.plan_schema,
        )
        self._store = store

    @property
    def store(self) -> AtomicStore:
        if self._store is None:
            repository = SqliteDesignRepository(
                self.settings.data_dir,
                wal_mode=self.settings.wal_mode,
                busy_timeout_ms=self.settings.busy_timeout_ms,
            )
            self._store = AtomicStore(
                repository,
                self.registry,
                self.adapters,
                compiler=self.compiler,
                settings=self.settings,
            )
        return self._store

    def compile_file(self, path: str, channel: str | None = None) -> CompileResult:
        """Compile a design file.

        Args:
            path: Design file (.json, .yaml or .yml)
            channel: Target channel (defaults from the design)

        Returns:
            CompileResult with plan and issues
        """
        raw = load_design_file(path)
        design = DesignDoc.from_dict(raw)
        adapter = self.store.select_adapter(design, channel)
        return self.compiler.compile(raw, self.registry, adapter)

    async def init(self, bot_id: str, path: str, channel: str | None = None) -> dict[str, Any]:
        result = await self.store.initialize(bot_id, load_design_file(path), channel=channel)
        return result.to_dict()

    async def apply(
        self,
        bot_id: str,
        patch_path: str,
        channel: str | None = None,
        expected_version_id: str | None = None,
    ) -> dict[str, Any]:
        with open(patch_path, "rb") as f:
            patch = f.read()
        result = await self.store.apply_atomic(
            bot_id,
            patch,
            channel=channel,
            expected_version_id=expected_version_id,
        )
        return result.to_dict()

    async def promote(self, bot_id: str, version_id: str) -> None:
        await self.store.promote(bot_id, version_id)

    async def versions(self, bot_id: str) -> list[dict[str, Any]]:
        return [v.to_dict() for v in await self.store.list_versions(bot_id)]

    async def plan(
        self,
        bot_id: str,
        version_id: str | None = None,
        channel: str | None = None,
    ) -> dict[str, Any]:
        plan = await self.store.compile_version(bot_id, version_id=version_id, channel=channel)
        return plan.to_dict()


def _print_issues(issues: list[dict[str, Any]]) -> None:
    for issue in issues:
        print(f"  [{issue['severity'].upper()}] {issue['code']} at {issue['path']}: {issue['message']}")


def _run(args: argparse.Namespace, cli: FlowCLI) -> int:
    if args.command == "compile":
        result = cli.compile_file(args.file, channel=args.channel)
        output = {
            "checksum": result.checksum,
            "plan": result.plan.to_dict(),
            "issues": [i.to_dict() for i in result.issues],
        }
        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(_dump(output))
            print(f"Plan written to {args.output}", file=sys.stderr)
        else:
            print(_dump(output))
        return EXIT_BLOCKED if result.has_errors else EXIT_OK

    if args.command == "validate":
        result = cli.compile_file(args.file, channel=args.channel)
        issues = [i.to_dict() for i in result.issues]
        if args.format == "json":
            print(_dump(issues))
        elif not issues:
            print("Design is valid")
        else:
            print(f"Found {len(issues)} issue(s):")
            _print_issues(issues)
        return EXIT_BLOCKED if result.has_errors else EXIT_OK

    if args.command == "init":
        print(_dump(asyncio.run(cli.init(args.bot_id, args.file, channel=args.channel))))
        return EXIT_OK

    if args.command == "apply":
        result = asyncio.run(
            cli.apply(args.bot_id, args.patch, channel=args.channel, expected_version_id=args.expected)
        )
        print(_dump(result))
        return EXIT_OK

    if args.command == "promote":
        asyncio.run(cli.promote(args.bot_id, args.version_id))
        print(f"Promoted {args.version_id} to production for {args.bot_id}")
        return EXIT_OK

    if args.command == "versions":
        versions = asyncio.run(cli.versions(args.bot_id))
        if args.format == "json":
            print(_dump(versions))
        else:
            for v in versions:
                marker = " (draft)" if v["is_draft"] else ""
                print(f"  {v['version_id']}  {v['status']}{marker}  {v['checksum']}")
        return EXIT_OK

    if args.command == "plan":
        print(_dump(asyncio.run(cli.plan(args.bot_id, version_id=args.version, channel=args.channel))))
        return EXIT_OK

    if args.command == "serve":
        import uvicorn

        from ..api.app import create_app

        uvicorn.run(
            create_app(settings=cli.settings),
            host=args.host or cli.settings.api_host,
            port=args.port or cli.settings.api_port,
        )
        return EXIT_OK

    raise ValueError(f"unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flowkit", description="Flowkit flow design tool")
    parser.add_argument("--data-dir", help="Directory for SQLite design stores")
    parser.add_argument("--strict", action="store_true", help="Template policy findings are errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # compile command
    compile_parser = subparsers.add_parser("compile", help="Compile a design file")
    compile_parser.add_argument("file", help="Design file (.json, .yaml, .yml)")
    compile_parser.add_argument("--channel", "-c", help="Target channel")
    compile_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Report validation issues")
    validate_parser.add_argument("file", help="Design file (.json, .yaml, .yml)")
    validate_parser.add_argument("--channel", "-c", help="Target channel")
    validate_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )

    # init command
    init_parser = subparsers.add_parser("init", help="Create a bot from a design file")
    init_parser.add_argument("bot_id")
    init_parser.add_argument("file", help="Design file (.json, .yaml, .yml)")
    init_parser.add_argument("--channel", "-c", help="Target channel")

    # apply command
    apply_parser = subparsers.add_parser("apply", help="Apply a JSON Patch to the draft")
    apply_parser.add_argument("bot_id")
    apply_parser.add_argument("patch", help="JSON Patch file")
    apply_parser.add_argument("--channel", "-c", help="Target channel")
    apply_parser.add_argument("--expected", help="Draft version the patch is based on")

    # promote command
    promote_parser = subparsers.add_parser("promote", help="Promote a version to production")
    promote_parser.add_argument("bot_id")
    promote_parser.add_argument("version_id")

    # versions command
    versions_parser = subparsers.add_parser("versions", help="List versions")
    versions_parser.add_argument("bot_id")
    versions_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )

    # plan command
    plan_parser = subparsers.add_parser("plan", help="Compile a stored version")
    plan_parser.add_argument("bot_id")
    plan_parser.add_argument("--version", help="Version id (default: draft)")
    plan_parser.add_argument("--channel", "-c", help="Target channel")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host")
    serve_parser.add_argument("--port", type=int)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the flow tool."""
    args = build_parser().parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    if args.strict:
        overrides["strict_templates"] = True
    settings = get_settings().model_copy(update=overrides) if overrides else get_settings()
    setup_logging(settings)

    cli = FlowCLI(settings)
    try:
        code = _run(args, cli)
    except ValidationFailedError as e:
        print(f"Rejected: {e.message}", file=sys.stderr)
        _print_issues([i.to_dict() for i in e.issues])
        code = EXIT_BLOCKED
    except FlowkitError as e:
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        code = EXIT_ERROR
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        code = EXIT_ERROR
    sys.exit(code)


if __name__ == "__main__":
    main()

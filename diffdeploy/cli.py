"""CLI interface for diffdeploy."""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import click
from rich.markup import escape

from . import __version__
from .backends import get_backend
from .config import config
from .deploy import (
    DeployEngine,
    DeployResult,
    DeployTarget,
    DirectoryScanner,
    OperationOutcome,
    RemoteManifestStore,
    filter_existing,
    load_targets_from_json,
    resolve_entries,
)
from .deploy.operations import Operation, OperationKind
from .deploy.target import normalize_remote_base
from .exceptions import (
    DeployConfigError,
    DeployError,
    RemoteAuthenticationError,
)
from .output import OutputFormatter

logger = logging.getLogger(__name__)

# Status labels printed after each operation line
_OUTCOME_LABELS = {
    OperationOutcome.APPLIED: "[green]\\[SUCCESS][/green]",
    OperationOutcome.PRESENT: "[yellow]\\[PRESENT][/yellow]",
    OperationOutcome.UNSUPPORTED: "[yellow]\\[UNSUPPORTED][/yellow]",
    OperationOutcome.ABSENT: "[dim]\\[NOT FOUND][/dim]",
}


def target_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that talks to a server."""
    options = [
        click.option("--host", "-H", help="Remote server host name"),
        click.option(
            "--remote-base", "-r", help="Remote directory to deploy into"
        ),
        click.option("--username", "-u", help="Login name"),
        click.option("--password", "-p", help="Password"),
        click.option(
            "--protocol",
            type=click.Choice(["ftp", "sftp"], case_sensitive=False),
            help="Transfer protocol (default: ftp)",
        ),
        click.option("--port", type=int, help="Server port"),
        click.option(
            "--targets",
            "targets_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="JSON file with deploy targets",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def build_targets(
    host: Optional[str],
    remote_base: Optional[str],
    username: Optional[str],
    password: Optional[str],
    protocol: Optional[str],
    port: Optional[int],
    targets_file: Optional[Path],
    disable_perms: bool = False,
    ignore: tuple[str, ...] = (),
) -> list[DeployTarget]:
    """Build deploy targets from CLI options, the targets file and config.

    Command line options override values from the targets file, which
    override the user configuration.
    """
    if targets_file is not None:
        targets = load_targets_from_json(targets_file)
    else:
        targets = [
            DeployTarget(
                host=config.host or "localhost",
                remote_base=config.remote_base or ".",
                username=config.username,
                password=config.password,
                protocol=config.protocol or "ftp",
                port=config.port,
            )
        ]

    for target in targets:
        if host:
            target.host = host
        if remote_base:
            target.remote_base = normalize_remote_base(remote_base)
        if username:
            target.username = username
        if password:
            target.password = password
        if protocol:
            target.protocol = protocol.lower()
        if port:
            target.port = port
        if disable_perms:
            target.disable_perms = True
        target.ignore = list(target.ignore) + list(ignore)
    return targets


def ask_credentials(target: DeployTarget) -> None:
    """Prompt for whatever credentials the target is missing."""
    label = target.protocol.upper()
    if target.username is None:
        target.username = click.prompt(f"{label} username", type=str)
    if target.password is None:
        target.password = click.prompt(
            f"{label} password", hide_input=True, default="", show_default=False
        )


def make_operation_printer(
    out: OutputFormatter,
) -> Callable[[Operation, OperationOutcome], None]:
    """Create the callback that prints one line per executed operation."""

    def print_operation(operation: Operation, outcome: OperationOutcome) -> None:
        if outcome == OperationOutcome.SKIPPED:
            return
        if operation.kind == OperationKind.SET_PERMISSIONS:
            logger.debug(f"{operation.describe()}: {outcome.value}")
            if outcome != OperationOutcome.UNSUPPORTED:
                return
        if (
            operation.kind == OperationKind.DELETE_FILE
            and outcome == OperationOutcome.ABSENT
        ):
            # The directory delete that follows reports the final status
            return
        style = "magenta" if operation.kind.value.startswith("delete") else ""
        line = escape(operation.describe())
        if style:
            line = f"[{style}]{line}[/{style}]"
        out.info(f"{line}   {_OUTCOME_LABELS[outcome]}")

    return print_operation


def _plan_rows(result: DeployResult) -> list[dict[str, Any]]:
    rows = []
    for operation in result.plan:
        detail = ""
        if operation.kind == OperationKind.UPLOAD_FILE:
            detail = str(operation.source)
        elif operation.kind == OperationKind.SET_PERMISSIONS:
            detail = f"{operation.permissions:o}"
        rows.append(
            {"action": operation.kind.value, "path": operation.path, "detail": detail}
        )
    return rows


def _collect_entries(path: Path, target: DeployTarget, exclude_dot_files: bool):
    scanner = DirectoryScanner(
        ignore_patterns=target.ignore, exclude_dot_files=exclude_dot_files
    )
    return resolve_entries(filter_existing(scanner.scan(path)))


def _run(
    ctx: Any,
    path: Path,
    targets: list[DeployTarget],
    dry_run: bool,
    exclude_dot_files: bool,
    workers: int,
) -> None:
    out: OutputFormatter = ctx.obj["out"]
    results = []

    try:
        for target in targets:
            ask_credentials(target)
            entries = _collect_entries(path, target, exclude_dot_files)

            out.info(f"Pushing to: {escape(target.host)} ({target.protocol})")
            if target.disable_perms:
                out.info("File permissions ignored by configuration!")

            engine = DeployEngine(
                get_backend(target.protocol, port=target.port),
                target,
                on_operation=make_operation_printer(out),
                max_workers=workers,
            )
            result = engine.deploy(entries, dry_run=dry_run)
            results.append((target, result))

            if dry_run and not out.json_output:
                if result.plan:
                    out.output_table(
                        _plan_rows(result),
                        ["action", "path", "detail"],
                        {"action": "Action", "path": "Path", "detail": "Detail"},
                        title=f"Plan for {escape(target.host)}",
                    )
                else:
                    out.info("Nothing to deploy, remote is up to date.")
            elif not dry_run:
                changes = result.changes
                out.print_summary(
                    "Deploy Complete",
                    [
                        ("Directories created", str(changes["make_directory"])),
                        ("Files uploaded", str(changes["upload_file"])),
                        (
                            "Paths deleted",
                            str(changes["delete_file"] + changes["delete_directory"]),
                        ),
                    ],
                )
                out.success(f"Saved manifest on {escape(target.host)}")
    except RemoteAuthenticationError:
        out.error("bad username or password")
        ctx.exit(1)
    except DeployError as e:
        out.error(str(e))
        ctx.exit(1)
    except NotADirectoryError as e:
        out.error(str(e))
        ctx.exit(1)
    except KeyboardInterrupt:
        out.warning("\nDeploy cancelled by user")
        ctx.exit(130)

    if out.json_output:
        out.output_json(
            [
                {
                    "host": target.host,
                    "state": result.state.value,
                    "stats": result.stats,
                    "plan": _plan_rows(result),
                }
                for target, result in results
            ]
        )


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """diffdeploy - Deploy a folder over FTP or SFTP, uploading only changes."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("diffdeploy").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def deploy_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by push and plan."""
    options = [
        click.argument(
            "path", type=click.Path(exists=True, file_okay=False, path_type=Path)
        ),
        target_options,
        click.option(
            "--disable-perms",
            is_flag=True,
            help="Do not copy local permission bits to the server",
        ),
        click.option(
            "--ignore",
            "-i",
            multiple=True,
            help="Glob pattern of local paths to leave out (repeatable)",
        ),
        click.option(
            "--exclude-dot-files", is_flag=True, help="Leave out dot files"
        ),
        click.option(
            "--workers",
            "-w",
            type=click.IntRange(1, 1000),
            default=100,
            show_default=True,
            help="Maximum number of files hashed in parallel",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


@main.command()
@deploy_options
@click.pass_context
def push(
    ctx: Any,
    path: Path,
    host: Optional[str],
    remote_base: Optional[str],
    username: Optional[str],
    password: Optional[str],
    protocol: Optional[str],
    port: Optional[int],
    targets_file: Optional[Path],
    disable_perms: bool,
    ignore: tuple[str, ...],
    exclude_dot_files: bool,
    workers: int,
) -> None:
    """Deploy PATH, uploading only what changed since the last push.

    Examples:
        diffdeploy push ./build -H ftp.example.com -r /www -u deploy
        diffdeploy push ./site --protocol sftp -H example.com -r /var/www
        diffdeploy push ./dist --targets deploy.json
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        targets = build_targets(
            host,
            remote_base,
            username,
            password,
            protocol,
            port,
            targets_file,
            disable_perms,
            ignore,
        )
    except DeployConfigError as e:
        out.error(str(e))
        ctx.exit(1)
    _run(ctx, path, targets, False, exclude_dot_files, workers)


@main.command()
@deploy_options
@click.pass_context
def plan(
    ctx: Any,
    path: Path,
    host: Optional[str],
    remote_base: Optional[str],
    username: Optional[str],
    password: Optional[str],
    protocol: Optional[str],
    port: Optional[int],
    targets_file: Optional[Path],
    disable_perms: bool,
    ignore: tuple[str, ...],
    exclude_dot_files: bool,
    workers: int,
) -> None:
    """Show what push would do for PATH without changing anything."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        targets = build_targets(
            host,
            remote_base,
            username,
            password,
            protocol,
            port,
            targets_file,
            disable_perms,
            ignore,
        )
    except DeployConfigError as e:
        out.error(str(e))
        ctx.exit(1)
    _run(ctx, path, targets, True, exclude_dot_files, workers)


@main.command()
@target_options
@click.pass_context
def manifest(
    ctx: Any,
    host: Optional[str],
    remote_base: Optional[str],
    username: Optional[str],
    password: Optional[str],
    protocol: Optional[str],
    port: Optional[int],
    targets_file: Optional[Path],
) -> None:
    """Show the manifest saved by the last successful push."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        targets = build_targets(
            host, remote_base, username, password, protocol, port, targets_file
        )
        target = targets[0]
        ask_credentials(target)
        backend = get_backend(target.protocol, port=target.port)
        with backend.connect(
            target.host, target.username or "", target.password or ""
        ) as session:
            session.change_directory(target.remote_base)
            data = RemoteManifestStore(session).fetch()
    except RemoteAuthenticationError:
        out.error("bad username or password")
        ctx.exit(1)
    except DeployError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(data)
        return

    if not data:
        out.info("Nothing deployed yet.")
        return

    out.output_table(
        [
            {"path": path, "signature": signature}
            for path, signature in sorted(data.items())
        ],
        ["path", "signature"],
        {"path": "Path", "signature": "Signature"},
    )


if __name__ == "__main__":
    main()

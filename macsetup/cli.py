from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console

from .brew import MANUAL_INSTALL_HINT, brew_installed, brew_version, install_homebrew, probe_inventory
from .catalog import CatalogError, load_catalog
from .history import default_log, parse_history
from .installer import SpawnFn, exit_code, run_all
from .models import INSTALL, UNINSTALL, Inventory, InstallationResult, Plan
from .report import ConsoleReporter, print_history, print_plan, print_summary
from .ui_app import CANCELLED, DECLINED, EMPTY, QUIT, TOOLS_PER_PAGE, SetupApp

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="macsetup", description="Pick development tools and install them with Homebrew.")
    ap.add_argument("--data", default="", help="JSON catalog to use instead of the built-in tool list")
    ap.add_argument("--order", choices=("name", "catalog"), default="name", help="category order")
    ap.add_argument("--page-size", type=int, default=TOOLS_PER_PAGE, help="visible rows per checklist")
    ap.add_argument("--yes", action="store_true", help="do not ask for confirmation")
    ap.add_argument("--dry-run", action="store_true", help="show the plan, change nothing")
    ap.add_argument("--skip-intro", action="store_true", help="start with the first category")
    ap.add_argument("--history", action="store_true", help="show previous install/uninstall runs and exit")
    ap.add_argument("--log", default="", help="history log path (default: ~/.cache/macsetup/history.log)")
    return ap

async def apply_plan(
    plan: Plan,
    console: Console,
    history_path: Optional[str] = None,
    spawn: Optional[SpawnFn] = None,
) -> int:
    reporter = ConsoleReporter(console)
    removed: List[InstallationResult] = []
    added: List[InstallationResult] = []
    if plan.to_uninstall:
        removed = await run_all(plan.to_uninstall, UNINSTALL, reporter, spawn, history_path)
        print_summary(removed, UNINSTALL, console)
    if plan.to_install:
        added = await run_all(plan.to_install, INSTALL, reporter, spawn, history_path)
        print_summary(added, INSTALL, console)
    return exit_code(removed, added)

def _homebrew_status(console: Console, dry_run: bool) -> Optional[str]:
    if brew_installed():
        ver = brew_version()
        return "[green]✓ Homebrew is installed[/green]" + (f" [dim](version {ver})[/dim]" if ver else "")
    if dry_run:
        return "[yellow]✗ Homebrew is not installed (dry run)[/yellow]"

    console.print("Homebrew is not installed. Installing now...")
    console.print("This may take a few minutes. Please follow the prompts if any appear.", style="bright_black")
    ok, err = install_homebrew()
    if ok:
        return "[green]✓ Homebrew installed successfully[/green]"
    console.print(f"✗ Failed to install Homebrew: {err}", style="red", markup=False)
    console.print("\nPlease install Homebrew manually and try again:", style="yellow")
    console.print(f"  {MANUAL_INSTALL_HINT}", style="bright_black", markup=False)
    return None

def run(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    args = build_parser().parse_args(argv)
    console = console or Console()
    log_path = args.log or default_log()

    if args.history:
        print_history(parse_history(log_path), console)
        return EXIT_OK

    tools = load_catalog(args.data)
    status = _homebrew_status(console, args.dry_run)
    if status is None:
        return EXIT_FAILED

    inventory = Inventory()
    if brew_installed():
        with console.status("Checking installed packages..."):
            inventory = probe_inventory()

    app = SetupApp(
        tools,
        inventory,
        order=args.order,
        brew_status=status,
        confirm_plan=not (args.yes or args.dry_run),
        page_size=max(1, args.page_size),
        show_intro=not args.skip_intro,
    )
    result = app.run()

    if result is None or result.status == CANCELLED:
        console.print("\nExiting...", style="yellow")
        return EXIT_INTERRUPTED
    if result.status == QUIT:
        console.print("\nExiting...", style="yellow")
        return EXIT_OK
    if result.status == EMPTY:
        console.print("\nNo tools selected. Exiting.", style="yellow")
        return EXIT_OK
    if result.status == DECLINED:
        console.print("\nOperation cancelled.", style="yellow")
        return EXIT_OK

    print_plan(result.plan, console)
    if not result.plan.has_changes:
        return EXIT_OK
    if args.dry_run:
        console.print("Dry run, nothing changed.", style="bright_black")
        return EXIT_OK
    return asyncio.run(apply_plan(result.plan, console, log_path))

def main(argv: Optional[List[str]] = None) -> None:
    console = Console()
    try:
        rc = run(argv, console)
    except KeyboardInterrupt:
        console.print("\nExiting...", style="yellow")
        rc = EXIT_INTERRUPTED
    except CatalogError as e:
        console.print(f"✗ Invalid catalog: {e}", style="red", markup=False)
        rc = EXIT_FAILED
    except Exception as e:
        console.print(f"\n✗ Unexpected error: {e!r}", style="red", markup=False)
        rc = EXIT_FAILED
    sys.exit(rc)

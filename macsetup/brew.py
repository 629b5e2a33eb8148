from __future__ import annotations
import os
import platform
import re
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Set, Tuple

from .models import CASK, INSTALL, Inventory, Tool

INSTALL_SCRIPT_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
MANUAL_INSTALL_HINT = f'/bin/bash -c "$(curl -fsSL {INSTALL_SCRIPT_URL})"'

def brew_bin() -> str:
    return os.environ.get("MACSETUP_BREW", "brew")

def which(cmd: str) -> bool:
    return shutil.which(cmd) is not None

def run_capture(cmd: List[str]) -> Tuple[int, str]:
    try:
        p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True)
        return p.returncode, p.stdout
    except FileNotFoundError:
        return 127, f"Command not found: {cmd[0]}"
    except OSError as e:
        return 126, str(e)

def brew_args(tool: Tool, mode: str) -> List[str]:
    verb = "install" if mode == INSTALL else "uninstall"
    if tool.kind == CASK:
        return [verb, "--cask", tool.package]
    return [verb, tool.package]

def brew_installed() -> bool:
    return which(brew_bin())

def parse_version(text: str) -> Optional[str]:
    m = re.search(r"Homebrew\s+([\d.]+)", text)
    return m.group(1) if m else None

def brew_version() -> Optional[str]:
    rc, out = run_capture([brew_bin(), "--version"])
    return parse_version(out) if rc == 0 else None

def brew_prefix_bin() -> str:
    if platform.system() == "Darwin" and platform.machine() == "arm64":
        return "/opt/homebrew/bin"
    return "/usr/local/bin"

def install_homebrew() -> Tuple[bool, str]:
    """
    Runs the official installer with the terminal attached (it asks for the
    password and confirmation itself) and puts brew on PATH for this process.
    """
    try:
        rc = subprocess.call(["/bin/bash", "-c", MANUAL_INSTALL_HINT])
    except OSError as e:
        return False, str(e)
    if rc != 0:
        return False, f"Installation script exited with code {rc}"
    bindir = brew_prefix_bin()
    path = os.environ.get("PATH", "")
    if bindir not in path.split(os.pathsep):
        os.environ["PATH"] = bindir + os.pathsep + path if path else bindir
    return True, ""

def _listing(out: str) -> Set[str]:
    return {ln.strip() for ln in out.splitlines() if ln.strip()}

def installed_formulae() -> Set[str]:
    rc, out = run_capture([brew_bin(), "list", "--formula", "-1"])
    return _listing(out) if rc == 0 else set()

def installed_casks() -> Set[str]:
    rc, out = run_capture([brew_bin(), "list", "--cask", "-1"])
    return _listing(out) if rc == 0 else set()

def _safe(fn) -> Set[str]:
    try:
        return fn()
    except Exception:
        return set()

def probe_inventory() -> Inventory:
    with ThreadPoolExecutor(max_workers=2) as pool:
        f = pool.submit(_safe, installed_formulae)
        c = pool.submit(_safe, installed_casks)
        return Inventory(formulae=frozenset(f.result()), casks=frozenset(c.result()))

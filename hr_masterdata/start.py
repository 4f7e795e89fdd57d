#!/usr/bin/env python3
"""
HR Masterdata - start the API server
Run: python start.py [--port 8000] [--no-reload]
"""
import argparse
import os
import signal
import socket
import subprocess
import sys
from pathlib import Path


class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    CYAN = '\033[96m'
    WHITE = '\033[97m'
    RESET = '\033[0m'


def print_colored(message, color=Colors.WHITE):
    print(f"{color}{message}{Colors.RESET}")


def port_in_use(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        return sock.connect_ex(("127.0.0.1", port)) == 0


def start_backend(project_root: Path, port: int, reload: bool):
    backend_dir = project_root / "backend"
    env = os.environ.copy()
    env["PYTHONPATH"] = str(backend_dir)

    if not (project_root / ".env").exists() and not (backend_dir / ".env").exists():
        print_colored("⚠️  No .env file found; using environment variables and defaults", Colors.YELLOW)

    cmd = [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", str(port)]
    if reload:
        cmd.append("--reload")
    return subprocess.Popen(cmd, cwd=str(backend_dir), env=env, stdout=None, stderr=subprocess.STDOUT)


def main():
    parser = argparse.ArgumentParser(description="Start the HR Masterdata API")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    parser.add_argument("--no-reload", action="store_true")
    args = parser.parse_args()

    project_root = Path(__file__).resolve().parent
    if port_in_use(args.port):
        print_colored(f"❌ Port {args.port} is already in use", Colors.RED)
        sys.exit(1)

    print_colored("🚀 Starting HR Masterdata API", Colors.GREEN)
    proc = start_backend(project_root, args.port, reload=not args.no_reload)
    print_colored(f"   API:     http://localhost:{args.port}/api", Colors.WHITE)
    print_colored(f"   Docs:    http://localhost:{args.port}/docs (DEBUG=true only)", Colors.WHITE)
    print_colored("Press Ctrl+C to stop", Colors.CYAN)
    try:
        sys.exit(proc.wait())
    except KeyboardInterrupt:
        print_colored("\n🛑 Stopping server...", Colors.YELLOW)
        proc.send_signal(signal.SIGINT)
        proc.wait()


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Development startup script.

Starts the mock backend and the storefront proxy in development mode.
"""

import os
import shutil
import subprocess
import sys
import time
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

BACKEND_PORT = os.getenv("MOCK_BACKEND_PORT", "8080")
STOREFRONT_PORT = os.getenv("PORT", "3000")


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import httpx
        import jwt
        import pydantic_settings
        import uvicorn
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Create config/.env from the example on first run."""
    env_file = PROJECT_ROOT / "config" / ".env"
    env_example = PROJECT_ROOT / "config" / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    if env_example.exists():
        print("! Configuration file not found, copying from example...")
        shutil.copy(env_example, env_file)
        print("✓ Created config/.env from example")
        return True
    print("✗ No configuration file found")
    return False


def _uvicorn(app: str, port: str) -> subprocess.Popen:
    return subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn",
            app,
            "--reload",
            "--host", "0.0.0.0",
            "--port", port,
        ],
        cwd=PROJECT_ROOT,
    )


def start_services():
    """Start both services and wait until interrupted."""
    processes = []

    try:
        print(f"\n🗄️  Starting mock backend on http://localhost:{BACKEND_PORT} ...")
        processes.append(_uvicorn("mock_backend.main:app", BACKEND_PORT))

        # Give the backend a head start; the proxy resolves carts on first use
        time.sleep(2)

        print(f"🛒 Starting storefront proxy on http://localhost:{STOREFRONT_PORT} ...")
        processes.append(_uvicorn("storefront.main:app", STOREFRONT_PORT))

        print("\n" + "=" * 60)
        print("Services started successfully!")
        print("=" * 60)
        print(f"\n📍 Backend API:    http://localhost:{BACKEND_PORT}/docs")
        print(f"📍 Storefront API: http://localhost:{STOREFRONT_PORT}/docs")
        print("\nPress Ctrl+C to stop all services")
        print("=" * 60)

        for p in processes:
            p.wait()

    except KeyboardInterrupt:
        print("\n\nShutting down services...")
        for p in processes:
            p.terminate()
        for p in processes:
            p.wait()
        print("All services stopped.")


def main():
    print("=" * 60)
    print("Storefront - Development Server")
    print("=" * 60)

    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_env():
        sys.exit(1)

    print("\n✓ All checks passed!")

    start_services()


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Development startup script.

Starts the cart service in development mode.
"""

import os
import sys
import subprocess
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import jwt
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / ".env"

    if env_file.exists():
        print("✓ Configuration file found")
    else:
        print("! No .env file - using the development JWT secret")
    return True


def start_service():
    """Start the cart service in development mode."""
    print("\n🛒 Starting Cart Service on http://localhost:8001 ...")
    process = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn",
            "cart_service.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", "8001",
        ],
        cwd=PROJECT_ROOT,
        env={**os.environ},
    )

    print("\n" + "=" * 60)
    print("Cart service started!")
    print("=" * 60)
    print("\n📍 Cart API:  http://localhost:8001/docs")
    print("📍 Dev token: python scripts/issue_token.py <user_id>")
    print("\nPress Ctrl+C to stop")
    print("=" * 60)

    try:
        process.wait()
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        process.terminate()
        process.wait()
        print("Cart service stopped.")


def main():
    print("=" * 60)
    print("Cart Service - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    check_env()

    print("\n✓ All checks passed!")

    start_service()


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Cross-platform install script for media-bridge.

Usage:
    python install.py          # Production install
    python install.py --dev    # Development install (includes test tools)
"""

import os
import platform
import shutil
import subprocess
import sys

MIN_PYTHON = (3, 11)


def main() -> None:
    # 1. Check Python version
    if sys.version_info < MIN_PYTHON:
        sys.exit(
            f"Error: Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+ is required. "
            f"You have {sys.version_info.major}.{sys.version_info.minor}."
        )

    print(f"Python {sys.version_info.major}.{sys.version_info.minor} detected. OK.")

    dev = "--dev" in sys.argv
    project_dir = os.path.dirname(os.path.abspath(__file__))
    venv_dir = os.path.join(project_dir, ".venv")
    is_windows = platform.system() == "Windows"

    bin_dir = "Scripts" if is_windows else "bin"
    pip = os.path.join(venv_dir, bin_dir, "pip")

    # 2. Create virtual environment
    if not os.path.isdir(venv_dir):
        print("Creating virtual environment...")
        subprocess.check_call([sys.executable, "-m", "venv", venv_dir])
    else:
        print("Virtual environment already exists.")

    # 3. Upgrade pip and install the project
    subprocess.check_call([pip, "install", "--upgrade", "pip"])
    if dev:
        print("Installing media-bridge in development mode...")
        subprocess.check_call([pip, "install", "-e", ".[dev]"], cwd=project_dir)
    else:
        print("Installing media-bridge...")
        subprocess.check_call([pip, "install", "."], cwd=project_dir)

    # 4. Data directory holds the WhatsApp session database
    os.makedirs(os.path.join(project_dir, "data"), exist_ok=True)

    # 5. Copy .env template if missing
    env_src = os.path.join(project_dir, ".env.example")
    env_dst = os.path.join(project_dir, ".env")
    if not os.path.exists(env_dst) and os.path.exists(env_src):
        shutil.copy(env_src, env_dst)
        print("Created .env from .env.example")
    elif os.path.exists(env_dst):
        print(".env already exists, skipping.")

    activate_cmd = r".\.venv\Scripts\activate" if is_windows else "source .venv/bin/activate"

    print()
    print("=" * 50)
    print("  media-bridge installation complete!")
    print("=" * 50)
    print()
    print("Next steps:")
    print("  1. Edit .env:")
    print("       TELEGRAM_BOT_TOKEN=...")
    print("       TELEGRAM_USER_ID=...")
    print("       WHATSAPP_PHONE=+<country code><number>")
    print("  2. Activate the virtual environment:")
    print(f"       {activate_cmd}")
    print("  3. Check the configuration:")
    print("       python -m media_bridge config-check")
    print("  4. Start the bridge and scan the QR code with WhatsApp:")
    print("       python -m media_bridge")
    print()


if __name__ == "__main__":
    main()

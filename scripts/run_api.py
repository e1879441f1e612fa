import subprocess
import sys
import os
from pathlib import Path

project_root = Path(__file__).parent.parent
src_path = str(project_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from shipment_tool.config.settings import Settings, get_settings


def build_command(settings: Settings):
    """uvicorn command line for the API; reload only when enabled in settings."""
    cmd = [
        sys.executable, "-m", "uvicorn",
        "shipment_tool.api.main:app",
        "--host", settings.host,
        "--port", str(settings.port),
        "--log-level", settings.log_level.lower(),
    ]
    if settings.reload:
        cmd.append("--reload")
    return cmd


def main():
    os.chdir(project_root)

    # Ensure src is in python path
    env = os.environ.copy()
    if "PYTHONPATH" in env:
        env["PYTHONPATH"] = f"{src_path}{os.pathsep}{env['PYTHONPATH']}"
    else:
        env["PYTHONPATH"] = src_path

    settings = get_settings()
    print(f"Starting Shipment Tool API (FastAPI) on {settings.host}:{settings.port}...")
    try:
        subprocess.run(build_command(settings), env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")

if __name__ == "__main__":
    main()

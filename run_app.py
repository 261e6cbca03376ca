"""Launcher: loads .env then serves the BizPulse dashboard (extra args go to streamlit)."""
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent


def main() -> int:
    load_dotenv(ROOT / ".env")
    from streamlit.web import cli as stcli

    sys.argv = ["streamlit", "run", str(ROOT / "app.py"), *sys.argv[1:]]
    return stcli.main()


if __name__ == "__main__":
    sys.exit(main())

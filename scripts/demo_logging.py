#!/usr/bin/env python3
"""
Log a nested person record with sensitive fields masked.

Writes to the console and to ./logs/My App.log. Set
LOG_SERVICE_ELASTIC_SEARCH__URL to also forward records to a search backend.
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from redactlog import ConsoleConfig, FileConfig, InitialConfig, LogService


def main():
    config = InitialConfig(
        app_name="My App",
        hostname="localhost",
        version="1.0",
        console=ConsoleConfig(silent=False, prettify=False),
        file=FileConfig(silent=False, log_file_dir=str(Path("logs").resolve())),
    )

    logger = LogService(["password", "phoneNumber", "address"], "*")
    logger.init(config)

    person = {
        "name": "marshall",
        "age": 25,
        "address": {"country": "Angola", "province": "Luanda"},
        "phoneNumber": "+244 999 999 999",
        "email": "marshall@example.com",
        "logins": [
            {"username": "marshall", "password": "123qwe123"},
            {"username": "taikai1", "password": "1969"},
        ],
    }

    logger.i(["Find my personal information", person, "Hope you enjoy"])
    logger.d("I am being debugged 🚫🐞")
    logger.w("You are about to love this lib ⚠")
    logger.e("Oh no! Something went wrong 😱").send()
    logger.i("Nevermind", "its all okay 💯")

    logger.close()
    print(f"✅ Log file written to {Path('logs').resolve()}")


if __name__ == "__main__":
    main()

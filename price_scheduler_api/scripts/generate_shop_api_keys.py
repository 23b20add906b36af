#!/usr/bin/env python3
"""
Give every shop in shops_config.json an api_key (the X-Shop-Key value).

Requires the package to be installed (pip install -e .).
"""

import secrets
import sys

from price_scheduler.config import load_shops_config, save_shops_config


def generate_api_key(length: int = 32) -> str:
    """Generate a random hex API key."""
    return secrets.token_hex(length)


def main():
    try:
        config = load_shops_config()
        shops = config.get("shops", {})

        missing = [name for name, shop in shops.items() if not shop.get("api_key")]
        for name in missing:
            shops[name]["api_key"] = generate_api_key()
            print(f"Generated API key for shop '{name}': {shops[name]['api_key']}")

        if missing:
            save_shops_config(config)
            print(f"\nSaved {len(missing)} new key(s) to config file.")
        else:
            print("All shops already have API keys.")

    except (OSError, ValueError) as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

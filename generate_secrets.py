#!/usr/bin/env python3
"""
Generate secrets for the Pick'em league service
Prints SECRET_KEY and ADMIN_API_TOKEN lines ready for a .env file
"""

import secrets

SECRET_NAMES = ("SECRET_KEY", "ADMIN_API_TOKEN")


def generate_secrets(nbytes=32):
    """Return a fresh random value for every required secret"""
    return {name: secrets.token_urlsafe(nbytes) for name in SECRET_NAMES}


def main():
    print("🔐 Generating secrets for the Pick'em league service...")
    print("=" * 50)

    for name, value in generate_secrets().items():
        print(f"{name}={value}")

    print("=" * 50)
    print("📝 Copy these values to your .env file")
    print("⚠️  Admin endpoints accept anyone holding ADMIN_API_TOKEN; never commit it!")


if __name__ == "__main__":
    main()

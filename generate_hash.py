"""Génère la valeur ADMIN_SECRET_HASH du .env.

Usage:
    python generate_hash.py "<secret admin>"
"""
import getpass
import sys

from vendgb.utils.security import hash_admin_secret

if __name__ == "__main__":
    secret = sys.argv[1] if len(sys.argv) > 1 else getpass.getpass("Secret admin: ")
    if not secret:
        sys.exit("Secret vide")
    print(f"ADMIN_SECRET_HASH={hash_admin_secret(secret)}")
